from textual.message import Message


class WorkStarted(Message):
    """A command started running."""


class WorkFinished(Message):
    """A command finished running."""

    def __init__(self, exit_code: int | None) -> None:
        self.exit_code = exit_code
        super().__init__()
