"""
FlexVol driver entry point.

The node agent executes the plugin once per lifecycle event and parses a
single JSON object from stdout:

    flexvol init
    flexvol attach <json options> [node name]
    flexvol getvolumename <json options>
    flexvol waitforattach <mount device> <json options>
    flexvol isattached <json options> [node name]
    flexvol detach <mount device> [node name]
    flexvol mount <mount dir> <mount device> [<json options>]
    flexvol mount <mount dir> <json options>
    flexvol unmount <mount dir>

Unknown commands answer {"status": "Not supported"}. Logs never go to
stdout.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

from pydantic import ValidationError

from flexvol.config import PluginConfig
from flexvol.controller import Controller
from flexvol.logging_config import setup_logging
from flexvol.models import DetachRequest, FlexVolumeResponse, MountRequest, UnmountRequest
from flexvol.storage_client import RemoteStorageClient

logger = logging.getLogger(__name__)


class InvalidArguments(ValueError):
    pass


def parse_args(argv=None, config: Optional[PluginConfig] = None):
    config = config or PluginConfig.from_env()
    parser = argparse.ArgumentParser(description="FlexVol volume plugin driver")
    parser.add_argument("--storage-api-url", default=config.storage_api_url, help="Control plane base URL")
    parser.add_argument("--backend", default=config.backend, help="Backend used for new volumes")
    parser.add_argument("--log-file", default=config.log_file, help="Driver log file")
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    parser.add_argument("--timeout", type=int, default=config.request_timeout, help="Control plane request timeout (s)")
    parser.add_argument("command", help="Lifecycle command")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Command arguments")
    return parser.parse_args(args=argv)


def _json_options(raw: str) -> Dict[str, Any]:
    try:
        options = json.loads(raw)
    except ValueError as e:
        raise InvalidArguments(f"Invalid JSON options: {e}")
    if not isinstance(options, dict):
        raise InvalidArguments("JSON options must be an object")
    return options


def _require(command: str, args: List[str], count: int) -> None:
    if len(args) < count:
        raise InvalidArguments(f"{command} requires {count} argument(s), got {len(args)}")


def _mount_request(args: List[str]) -> MountRequest:
    _require("mount", args, 2)
    if len(args) >= 3:
        mount_path, mount_device = args[0], args[1]
        opts = _json_options(args[2])
    else:
        mount_path = args[0]
        opts = _json_options(args[1])
        mount_device = str(opts.get("volumeName", ""))
    return MountRequest(mount_path=mount_path, mount_device=mount_device, opts=opts)


def dispatch(controller: Controller, command: str, args: List[str]) -> FlexVolumeResponse:
    """Run one driver command against the controller"""
    try:
        if command == "init":
            return controller.initialize()
        if command == "attach":
            _require(command, args, 1)
            return controller.attach(_json_options(args[0]))
        if command == "getvolumename":
            _require(command, args, 1)
            return controller.get_volume_name(_json_options(args[0]))
        if command == "waitforattach":
            options = _json_options(args[1]) if len(args) > 1 else {}
            return controller.wait_for_attach(options)
        if command == "isattached":
            options = _json_options(args[0]) if args else {}
            return controller.is_attached(options)
        if command == "detach":
            _require(command, args, 1)
            return controller.detach(DetachRequest(name=args[0]))
        if command == "mount":
            return controller.mount(_mount_request(args))
        if command == "unmount":
            _require(command, args, 1)
            return controller.unmount(UnmountRequest(mount_path=args[0]))
    except InvalidArguments as e:
        logger.error(f"{command}: {e}")
        return FlexVolumeResponse.failure(f"{command}: {e}")
    except ValidationError as e:
        logger.error(f"{command}: invalid request: {e}")
        return FlexVolumeResponse.failure(f"{command}: invalid request: {e}")

    logger.info(f"Command not supported: {command}")
    return FlexVolumeResponse.not_supported(f"{command} is not supported")


def build_controller(config: PluginConfig) -> Controller:
    config.validate()
    client = RemoteStorageClient(
        storage_api_url=config.storage_api_url,
        backend=config.backend or None,
        timeout=config.request_timeout
    )
    return Controller(client)


def run(argv=None, controller: Optional[Controller] = None, out: Optional[TextIO] = None) -> int:
    """
    Execute one driver invocation and write the JSON response to `out`.

    Returns the process exit status: 1 for Failure, 0 otherwise.
    """
    out = out or sys.stdout
    try:
        namespace = parse_args(argv)
    except SystemExit as e:
        # --help exits 0; usage errors answer with a Failure envelope
        if e.code in (0, None):
            raise
        response = FlexVolumeResponse.failure(f"Invalid driver arguments: {argv}")
        print(response.to_json(), file=out)
        return 1

    if controller is None:
        setup_logging("flexvol", level=namespace.log_level, log_file=namespace.log_file, stream=sys.stderr)

    logger.debug(f"driver command={namespace.command} args={namespace.args}")

    try:
        if controller is None:
            controller = build_controller(PluginConfig(
                storage_api_url=namespace.storage_api_url,
                backend=namespace.backend,
                log_file=namespace.log_file,
                log_level=namespace.log_level,
                request_timeout=namespace.timeout,
            ))
        response = dispatch(controller, namespace.command, namespace.args)
    except Exception as e:
        logger.error(f"{namespace.command} failed: {e}", exc_info=True)
        response = FlexVolumeResponse.failure(f"{namespace.command} failed: {e}")

    print(response.to_json(), file=out)
    return 0 if response.ok else 1


def main():
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
