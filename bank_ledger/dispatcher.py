"""
Routing of named functions onto the state machine operations.
"""

from typing import Optional, Sequence

from .errors import InvalidFunctionError
from .state_machine import LedgerStateMachine, QUERY_FUNCTION
from .storage import LedgerStore


INIT_FUNCTION = "init"
INVOKE_FUNCTION = "invoke"


def run(machine: LedgerStateMachine, store: LedgerStore,
        function: str, args: Sequence[str]) -> Optional[bytes]:
    """
    Route a state-changing call.

    "init" goes to initialize and "invoke" to adjust. Any other function name
    is accepted and does nothing.
    """
    if function == INIT_FUNCTION:
        return machine.initialize(store, args)
    if function == INVOKE_FUNCTION:
        return machine.adjust(store, args)
    return None


def dispatch(machine: LedgerStateMachine, store: LedgerStore,
             function: str, args: Sequence[str]) -> Optional[bytes]:
    """Route any call, rejecting unknown function names"""
    if function in (INIT_FUNCTION, INVOKE_FUNCTION):
        return run(machine, store, function, args)
    if function == QUERY_FUNCTION:
        return machine.query(store, function, args)
    raise InvalidFunctionError(function)
