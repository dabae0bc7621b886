"""Error kinds raised by the tracing, codec and rendering stages.

AIDEV-NOTE: Codes are grouped by domain (1xxx raster conversion, 2xxx
vector conversion, 3xxx tracing) and must stay stable, since the UI
surfaces them.
"""


class ToolboxError(Exception):
    """Base class for every error the core reports to collaborators."""

    code: int = 0

    def __init__(
        self,
        message: str,
        element: str | None = None,
        attribute: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.element = element
        self.attribute = attribute

    def __str__(self) -> str:
        location = []
        if self.element:
            location.append(f"<{self.element}>")
        if self.attribute:
            location.append(self.attribute)
        if location:
            return f"{self.message} ({' '.join(location)})"
        return self.message


# --- Raster conversion ---


class EncodingFailed(ToolboxError):
    code = 1002


class InvalidInput(ToolboxError):
    code = 1004


# --- Vector conversion ---


class InvalidXML(ToolboxError):
    code = 2001


class UnsupportedElement(ToolboxError):
    code = 2002


class InvalidPathData(ToolboxError):
    """Raised when a path-data string does not follow the grammar."""

    code = 2003

    def __init__(
        self,
        message: str,
        command: str | None = None,
        position: int | None = None,
        element: str | None = None,
        attribute: str | None = None,
    ) -> None:
        super().__init__(message, element=element, attribute=attribute)
        self.command = command
        self.position = position


class RenderingFailed(ToolboxError):
    code = 2004


class InvalidDocument(ToolboxError):
    code = 2005


# --- Tracing ---


class InvalidImage(InvalidInput):
    code = 3001


class QuantizationFailed(ToolboxError):
    code = 3002


class TracingFailed(ToolboxError):
    code = 3003
