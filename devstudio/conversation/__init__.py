"""Dev Studio chat flows: states, typed flow data and the engine."""

from devstudio.conversation.engine import DevStudioEngine, Turn
from devstudio.conversation.flows import FlowStateError, dump_flow, load_flow
from devstudio.conversation.states import AppAction, Command, Step

__all__ = [
    "AppAction",
    "Command",
    "DevStudioEngine",
    "FlowStateError",
    "Step",
    "Turn",
    "dump_flow",
    "load_flow",
]
