from typing import Any


class CloudwiseError(Exception): ...


class UnsupportedContentTypeError(CloudwiseError):
    def __init__(self, content_type: str | None):
        if content_type is None:
            msg = "no cloudevent type identified, content-type header is missing"
        else:
            msg = f"no cloudevent type identified for content-type `{content_type}`"
        super().__init__(msg)
        self.content_type = content_type


class MissingBodyError(CloudwiseError):
    def __init__(self):
        super().__init__("no cloudevent body")


class StructuredFormatError(CloudwiseError):
    def __init__(self, reason: str):
        super().__init__(f"invalid structured cloudevent: {reason}")


class AttributeValidationError(CloudwiseError):
    def __init__(self, reason: str):
        super().__init__(f"invalid cloudevent attributes: {reason}")
        self.reason = reason


class PayloadCodecError(CloudwiseError):
    def __init__(self, content_type: str, reason: str | None = None):
        msg = f"no payload codec registered for `{content_type}`"
        if reason:
            msg = f"payload of `{content_type}` could not be processed: {reason}"
        super().__init__(msg)
        self.content_type = content_type


class PipelineError(CloudwiseError): ...


class UnsatisfiedStageError(PipelineError):
    def __init__(self, stage: str, missing: set[str]):
        keys = ", ".join(sorted(missing))
        super().__init__(f"stage `{stage}` requires {keys}, not provided by any prior stage")


class ExtensionError(CloudwiseError): ...


class DuplicateExtensionError(ExtensionError):
    def __init__(self, name: str):
        super().__init__(f"extension `{name}` is already registered")


class ExtensionCollisionError(ExtensionError):
    def __init__(self, name: str, key: str, owner: Any):
        super().__init__(f"key `{key}` of extension `{name}` collides with {owner}")
        self.key = key


class RegistryFrozenError(ExtensionError):
    def __init__(self, name: str):
        super().__init__(f"can't register `{name}`, registry is frozen")


class InvalidConfigError(CloudwiseError, ValueError):
    def __init__(self, reason: str):
        super().__init__(f"invalid binding config: {reason}")
