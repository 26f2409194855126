from typing import Literal, get_args

ApplicationState = Literal["interested", "applied", "accepted", "rejected"]

APPLICATION_STATES: frozenset[str] = frozenset(get_args(ApplicationState))
DEFAULT_APPLICATION_STATE: ApplicationState = "interested"


def resolve_initial_state(state: str | None) -> str:
    # Any state may follow any other; only the initial default is fixed.
    if not state:
        return DEFAULT_APPLICATION_STATE
    if state not in APPLICATION_STATES:
        raise ValueError(f"unknown application state: {state}")
    return state
