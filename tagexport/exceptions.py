"""Custom exceptions for the tagexport pipeline"""

class TagExportError(Exception):
    """Base exception for all tagexport errors"""
    def __init__(self, message: str, module: str = None):
        self.message = message
        self.module = module or "unknown"
        super().__init__(f"[{self.module}] {self.message}")

class ExportError(TagExportError):
    """Base class for fatal export errors"""

class NoSegmentsError(ExportError):
    """Nothing left to export after segment validation"""
    def __init__(self, module: str = "pipeline"):
        super().__init__("No segments to export.", module)

class InputReadError(ExportError):
    """The input video could not be read or loaded"""

class SegmentEncodingError(ExportError):
    """Both cut strategies failed for a segment"""

class ConcatenationError(ExportError):
    """Both concat strategies failed"""

class BackendError(TagExportError):
    """Execution backend failure (spawn, filesystem, sandbox)"""

class BackendLoadError(BackendError):
    """The embedded runtime failed to load"""

class CommandExecutionError(BackendError):
    """An encoder invocation exited with a non-zero status"""
    def __init__(self, message: str, module: str = None, returncode: int = None, stderr: str = ""):
        super().__init__(message, module)
        self.returncode = returncode
        self.stderr = stderr

class DependencyError(TagExportError):
    """Missing required encoder binaries"""

class ProjectError(TagExportError):
    """Invalid or unsupported project file"""

class MetadataError(Exception):
    """Raised when metadata cannot be retrieved or parsed"""
    def __init__(self, message: str, property_name: str = None):
        self.property_name = property_name
        super().__init__(f"Metadata error: {message}")
