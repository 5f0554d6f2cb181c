"""Custom agispeak exceptions."""


class AgispeakError(Exception):
    """Base exception for agispeak errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class AGIError(AgispeakError):
    """Base exception for control channel failures."""


class AGIProtocolError(AGIError):
    """Exception raised when a reply does not match the AGI grammar.

    This typically occurs when:
    - The host answers with a 5xx error line
    - The reply line is malformed
    - The control channel reached end of file
    """

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


class AGICommandError(AGIError):
    """Exception raised when a well-formed reply reports a failed command."""

    def __init__(self, command: str, result: int) -> None:
        super().__init__(f"Command {command!r} failed with result {result}")
        self.command = command
        self.result = result


class AGIHangup(AGIError):
    """Exception raised when the host reports that the caller hung up."""


class VoiceNotFoundError(AgispeakError):
    """Exception raised when no voice model matches the requested identifier."""


class PipelineError(AgispeakError):
    """Base exception for synthesis and transcoding failures."""


class ProgramNotFoundError(PipelineError):
    """Exception raised when a required external program is not installed."""


class SynthesisError(PipelineError):
    """Exception raised when the text-to-speech engine fails."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.returncode = returncode


class TranscodeError(PipelineError):
    """Exception raised when the audio converter fails."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.returncode = returncode


class InvocationInterrupted(AgispeakError):
    """Exception raised from a signal handler to unwind the invocation."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"Interrupted by signal {signum}")
        self.signum = signum


class WorkspaceError(AgispeakError):
    """Exception raised when the temporary file directory cannot be used."""
