"""
Error taxonomy for the statement analysis pipeline.

Every error raised on bad input derives from ValueError. The ``stage``
attribute names the pipeline step that failed so that the command line can
print a one-line diagnostic.
"""


class UmsatzError(ValueError):
    """Base class for all fatal pipeline errors."""

    stage = 'umsatz'

    def __init__(self, message, stage=None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def diagnostic(self):
        """Return the one-line diagnostic shown to the user."""
        return f"error in {self.stage}: {self}".replace('\n', ' | ')


class RecordFormatError(UmsatzError):
    """A source row violates the CAMT-V2 row contract.

    Args:
        message (str): What is wrong with the row
        filename (str, optional): Source file the row came from
        line (str, optional): Offending raw line
    """

    stage = 'parser'

    def __init__(self, message, filename=None, line=None):
        details = message
        if filename is not None:
            details += f"\nfile: {filename}"
        if line is not None:
            details += f"\nrecord: {line}"
        super().__init__(details)
        self.filename = filename
        self.line = line


class EmptyBaseError(UmsatzError):
    """No records survived parsing and filtering for the requested year."""

    stage = 'aggregate'


class ConfigurationError(UmsatzError):
    """The request or the environment is invalid."""

    stage = 'config'


class PrinterError(UmsatzError):
    """The external document renderer failed."""

    stage = 'printer'
