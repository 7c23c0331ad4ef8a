from typing import Optional


class MultipartBuilderError(Exception):
    """Base class for errors raised while building a multipart body."""


class BuilderFinalizedError(MultipartBuilderError):
    pass


class WriterClosedError(MultipartBuilderError):
    pass


class ClosedPipeError(BrokenPipeError):
    pass


class PartWriteError(MultipartBuilderError):
    def __init__(self, message: str, field_name: str, cause: Optional[BaseException] = None) -> None:
        """Failure of a single part writing operation.

        Args:
            message: Human readable description, including the field and file involved.
            field_name: Name of the form field being written.
            cause: The underlying exception.
        """
        super().__init__(message)
        self.field_name = field_name
        self.cause = cause


class FieldWriteError(PartWriteError):
    def __init__(self, field_name: str, value: str, cause: BaseException) -> None:
        super().__init__(
            f"multipartbuilder: failed to write field {field_name}={value}: {cause}",
            field_name=field_name,
            cause=cause,
        )
        self.value = value


class FileOpenError(PartWriteError):
    def __init__(self, field_name: str, file_path: str, cause: BaseException) -> None:
        super().__init__(
            f"multipartbuilder: failed to open file {field_name} ({file_path}): {cause}",
            field_name=field_name,
            cause=cause,
        )
        self.file_path = file_path


class FormFileCreateError(PartWriteError):
    def __init__(self, field_name: str, file_name: str, cause: BaseException, source: str = "") -> None:
        super().__init__(
            f"multipartbuilder: failed to create form file {field_name} ({file_name}){source}: {cause}",
            field_name=field_name,
            cause=cause,
        )
        self.file_name = file_name


class FormFileCopyError(PartWriteError):
    def __init__(self, field_name: str, file_name: str, cause: BaseException, source: str = "") -> None:
        super().__init__(
            f"multipartbuilder: failed to copy form file {field_name} ({file_name}){source}: {cause}",
            field_name=field_name,
            cause=cause,
        )
        self.file_name = file_name
