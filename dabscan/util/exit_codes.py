"""Documented exit codes for the dabscan CLI.

Exit codes follow UNIX conventions:
- 0: Success
- 1: General/unspecified error
- 2: Invalid command-line arguments or usage
- 4-7: Application-specific errors
- 130: Interrupted (Ctrl-C)

Usage:
    from dabscan.util.exit_codes import ExitCode
    sys.exit(ExitCode.DEVICE_UNAVAILABLE)
"""

from __future__ import annotations


class ExitCode:
    """Exit code constants for dabscan processes.

    Attributes:
        SUCCESS: Scan completed and the report was written.
        GENERAL_ERROR: Unspecified runtime error.
        INVALID_ARGS: Command-line argument validation failed.
        DEVICE_UNAVAILABLE: Tuner could not be opened, or raised an I/O error mid-scan.
        ENGINE_UNAVAILABLE: Decoding engine factory could not be loaded.
        OUTPUT_ERROR: The report could not be written.
        INTERRUPTED: Scan cancelled by the user.
    """

    SUCCESS: int = 0
    GENERAL_ERROR: int = 1
    INVALID_ARGS: int = 2
    DEVICE_UNAVAILABLE: int = 4
    ENGINE_UNAVAILABLE: int = 6
    OUTPUT_ERROR: int = 7
    INTERRUPTED: int = 130

    @classmethod
    def message(cls, code: int) -> str:
        """Return a human-readable message for an exit code."""
        messages = {
            cls.SUCCESS: "Success",
            cls.GENERAL_ERROR: "General error",
            cls.INVALID_ARGS: "Invalid arguments",
            cls.DEVICE_UNAVAILABLE: "Tuner device unavailable",
            cls.ENGINE_UNAVAILABLE: "Decoding engine unavailable",
            cls.OUTPUT_ERROR: "Report could not be written",
            cls.INTERRUPTED: "Interrupted",
        }
        return messages.get(code, f"Unknown exit code {code}")
