"""Typed data carried between turns of a Dev Studio flow.

Each step owns exactly one flow type, so a step can never read a field left
behind by a different, interrupted flow. On disk the flow is a JSON object
tagged with a `flow` key.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter, ValidationError

from devstudio.conversation.states import APP_SCOPED_STEPS, NEW_APP_STEPS, AppAction, Step


class FlowStateError(Exception):
    """Stored data bag does not fit the stored state."""


class FlowData(BaseModel):
    model_config = ConfigDict(frozen=True)


class Idle(FlowData):
    flow: Literal["idle"] = "idle"


class NewAppDraft(FlowData):
    flow: Literal["new_app"] = "new_app"

    name: StrictStr | None = None
    description: StrictStr | None = None
    icon: StrictStr | None = None
    category_id: StrictInt | None = None
    username: StrictStr | None = None
    welcome: StrictStr | None = None


class AppSelection(FlowData):
    flow: Literal["app_selection"] = "app_selection"

    action: AppAction
    # Ids in the order they were listed to the user.
    app_ids: tuple[StrictInt, ...]


class AppScope(FlowData):
    flow: Literal["app_scope"] = "app_scope"

    app_id: StrictInt
    new_command: StrictStr | None = None
    cmd_desc: StrictStr | None = None


Flow = Annotated[
    Union[Idle, NewAppDraft, AppSelection, AppScope],
    Field(discriminator="flow"),
]

_flow_adapter = TypeAdapter(Flow)

_DRAFT_FIELDS_BY_STEP = {
    Step.AWAITING_APP_NAME: (),
    Step.AWAITING_APP_DESC: ("name",),
    Step.AWAITING_APP_ICON: ("name", "description"),
    Step.AWAITING_CATEGORY: ("name", "description", "icon"),
    Step.AWAITING_USERNAME: ("name", "description", "icon", "category_id"),
    Step.AWAITING_WELCOME: ("name", "description", "icon", "category_id", "username"),
}

# Fields a step reads that its flow model leaves optional.
REQUIRED_FIELDS: dict[Step, tuple[str, ...]] = {
    **_DRAFT_FIELDS_BY_STEP,
    Step.AWAITING_CMD_DESC: ("new_command",),
    Step.AWAITING_CMD_RESPONSE: ("new_command", "cmd_desc"),
}


def flow_type_for(step: Step) -> type[FlowData]:
    if step is Step.IDLE:
        return Idle
    if step in NEW_APP_STEPS:
        return NewAppDraft
    if step is Step.SELECTING_APP:
        return AppSelection
    if step in APP_SCOPED_STEPS:
        return AppScope
    raise FlowStateError(f"No flow type for step {step!r}")


def dump_flow(flow: FlowData) -> dict[str, Any]:
    """Serialize a flow into the JSON data bag."""
    if isinstance(flow, Idle):
        return {}
    return flow.model_dump(mode="json", exclude_none=True)


def load_flow(step: Step, data: Any) -> FlowData:
    """Decode the data bag stored for `step`.

    Raises FlowStateError when the bag belongs to another flow, has a value
    of the wrong type, or is missing a field the step relies on.
    """
    flow_type = flow_type_for(step)
    if flow_type is Idle:
        # Whatever is left in the bag is stale once the user is idle.
        return Idle()

    try:
        flow = _flow_adapter.validate_python(data)
    except ValidationError as exc:
        raise FlowStateError(
            f"Malformed data bag for {step.value}: {exc.error_count()} error(s)"
        ) from exc

    if not isinstance(flow, flow_type):
        raise FlowStateError(f"Data bag for {step.value} is a {flow.flow} flow")

    missing = [name for name in REQUIRED_FIELDS.get(step, ()) if getattr(flow, name) is None]
    if missing:
        raise FlowStateError(f"Data bag for {step.value} is missing {', '.join(missing)}")

    return flow
