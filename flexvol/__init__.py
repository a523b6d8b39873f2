"""
FlexVol (Host Volume Plugin)

The plugin runs on each node next to the orchestrator's node agent.
Responsibilities:
- Translate lifecycle requests (attach, mount, unmount, detach) into
  control-plane calls
- Link control-plane provided paths into pod mount directories
- Map pod mount directories back to volumes on unmount
- Report every outcome as a uniform JSON envelope
"""

__version__ = "0.3.0"
