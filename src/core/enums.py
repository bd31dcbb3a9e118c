from enum import Enum, IntEnum


class FetchState(Enum):
    INIT = "init"
    FETCHING = "fetching"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FetchState.DONE, FetchState.FAILED)

    @property
    def label(self):
        return _STATE_LABELS.get(self, self.name.title())


_STATE_LABELS = {
    FetchState.INIT: "Not started",
    FetchState.FETCHING: "Fetching",
    FetchState.DONE: "Done",
    FetchState.FAILED: "Failed",
}


class ExitCode(IntEnum):
    """Process exit codes for the dump command."""

    OK = 0
    INVALID_OUTPUT_PATH = 5
    FETCH_FAILED = 10
    WRITE_FAILED = 20
