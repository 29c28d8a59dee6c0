"""Method-call gateway for the image utilities operations.

A host application sends ``MethodCall(method, arguments)`` with untyped
arguments and a ``MethodResult`` receiver. Arguments are validated on the
caller's thread; the decode/encode work then runs on a dispatcher and the
receiver is told the outcome exactly once.

Methods:
    saveAsJpeg: sourceFilePath, destinationFilePath, quality, maxWidth,
        maxHeight and either scaleMode or canScaleUp. Returns the absolute
        path of the written JPEG.
    getImageProperties: imageFile. Returns width, height and orientation.
"""

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from .core.exceptions import ImageUtilitiesError, InvalidArgumentError, MethodCallError
from .core.logging_config import get_logger
from .core.models import (
    BoundedScalePolicy,
    DirectionalPolicy,
    ScaleMode,
    ScalePolicy,
    Size,
    TranscodeRequest,
)
from .core.protocols import Dispatcher, LoggerProtocol, MethodResult
from .core.services import ImagePropertiesService, TranscodingService

ERROR_CODE_EXCEPTION = "exception"
ERROR_CODE_INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
ERROR_CODE_NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


@dataclass(frozen=True)
class MethodCall:
    """A named method invocation with untyped arguments."""

    method: str
    arguments: Any = None


class SaveAsJpegArguments(BaseModel):
    """Arguments of ``saveAsJpeg``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_file_path: StrictStr = Field(alias="sourceFilePath", min_length=1)
    destination_file_path: Optional[StrictStr] = Field(
        default=None, alias="destinationFilePath"
    )
    quality: Optional[StrictInt] = None
    max_width: Optional[StrictInt] = Field(default=None, alias="maxWidth", ge=0)
    max_height: Optional[StrictInt] = Field(default=None, alias="maxHeight", ge=0)
    scale_mode: Optional[ScaleMode] = Field(default=None, alias="scaleMode")
    can_scale_up: Optional[StrictBool] = Field(default=None, alias="canScaleUp")

    @model_validator(mode="after")
    def _check_policy_shape(self) -> "SaveAsJpegArguments":
        if self.scale_mode is not None and self.can_scale_up is not None:
            raise ValueError("Arguments 'scaleMode' and 'canScaleUp' are mutually exclusive")
        if self.scale_mode is not None and (self.max_width is None or self.max_height is None):
            raise ValueError(
                f"Scale mode {self.scale_mode.value} requires both 'maxWidth' and 'maxHeight'"
            )
        return self

    def to_request(self) -> TranscodeRequest:
        """Build the transcode request these arguments describe.

        Without ``scaleMode`` or ``canScaleUp`` the request picks its own
        default policy from the bound.
        """
        bound = Size(width=self.max_width, height=self.max_height)

        policy: Optional[ScalePolicy] = None
        if self.can_scale_up is not None:
            policy = BoundedScalePolicy(allow_upscale=self.can_scale_up)
        elif self.scale_mode is not None:
            policy = DirectionalPolicy(mode=self.scale_mode)

        return TranscodeRequest(
            source_path=self.source_file_path,
            destination_path=self.destination_file_path or None,
            quality=self.quality,
            bound=bound,
            policy=policy,
        )


class GetImagePropertiesArguments(BaseModel):
    """Arguments of ``getImageProperties``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    image_file: StrictStr = Field(alias="imageFile", min_length=1)


def parse_arguments(model: type, arguments: Any) -> Any:
    """
    Validate untyped call arguments against an argument model.

    Raises:
        InvalidArgumentError: With a message naming the offending argument
    """
    if not isinstance(arguments, Mapping):
        raise InvalidArgumentError("Invalid arguments")

    try:
        return model.model_validate(dict(arguments))
    except ValidationError as exc:
        raise InvalidArgumentError(_describe_validation_error(exc)) from exc


def _describe_validation_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])

    if error["type"] == "missing":
        return f"Argument '{location}' is missing"
    if error["type"] == "value_error" and "error" in error.get("ctx", {}):
        message = str(error["ctx"]["error"])
    else:
        message = error["msg"]
    if location:
        return f"Argument '{location}' is invalid: {message}"
    return message


class SingleFireResult:
    """Forwards the first reported outcome and ignores any later one."""

    def __init__(self, delegate: MethodResult, method: str):
        self._delegate = delegate
        self._method = method
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def _claim(self) -> bool:
        with self._lock:
            if self._fired:
                get_logger("plugin").warning(
                    f"Ignoring second result for method call '{self._method}'"
                )
                return False
            self._fired = True
            return True

    def success(self, value: Any) -> None:
        if self._claim():
            self._delegate.success(value)

    def error(self, code: str, message: str, details: Optional[Any] = None) -> None:
        if self._claim():
            self._delegate.error(code, message, details)

    def not_implemented(self) -> None:
        if self._claim():
            self._delegate.not_implemented()


class FutureMethodResult:
    """Completes an asyncio future from any thread."""

    def __init__(self, future: "asyncio.Future[Any]"):
        self._future = future
        self._loop = future.get_loop()

    def _complete(self, setter: Callable[[Any], None], value: Any) -> None:
        def apply() -> None:
            if not self._future.done():
                setter(value)

        self._loop.call_soon_threadsafe(apply)

    def success(self, value: Any) -> None:
        self._complete(self._future.set_result, value)

    def error(self, code: str, message: str, details: Optional[Any] = None) -> None:
        self._complete(self._future.set_exception, MethodCallError(code, message, details))

    def not_implemented(self) -> None:
        self.error(ERROR_CODE_NOT_IMPLEMENTED, "Method not implemented")


class ImageUtilitiesPlugin:
    """Routes method calls to the transcoding and property services."""

    def __init__(
        self,
        transcoding_service: TranscodingService,
        properties_service: ImagePropertiesService,
        dispatcher: Dispatcher,
        logger: LoggerProtocol,
    ):
        self._transcoding_service = transcoding_service
        self._properties_service = properties_service
        self._dispatcher = dispatcher
        self._logger = logger
        self._handlers: Dict[str, Callable[[Any], Callable[[], Any]]] = {
            "saveAsJpeg": self._prepare_save_as_jpeg,
            "getImageProperties": self._prepare_get_image_properties,
        }

    @property
    def methods(self) -> tuple:
        return tuple(self._handlers)

    def on_method_call(self, call: MethodCall, result: MethodResult) -> None:
        """
        Handle one method call, reporting to ``result`` exactly once.

        Invalid arguments are reported synchronously before any work starts.
        Runtime failures are reported with the ``exception`` error code.
        """
        result = SingleFireResult(result, call.method)
        self._logger.debug(f"call: {call.method}")

        prepare = self._handlers.get(call.method)
        if prepare is None:
            self._logger.warning(f"Method '{call.method}' not implemented")
            result.not_implemented()
            return

        try:
            work = prepare(call.arguments)
        except InvalidArgumentError as e:
            self._logger.warning(f"{call.method} rejected: {e}")
            result.error(ERROR_CODE_INVALID_ARGUMENTS, str(e), None)
            return

        def on_error(error: BaseException) -> None:
            # Service errors were already logged with their traceback
            if isinstance(error, ImageUtilitiesError):
                self._logger.debug(f"{call.method} failed: {error}")
            else:
                self._logger.error(f"{call.method} failed: {error}")
            result.error(ERROR_CODE_EXCEPTION, str(error), repr(error))

        try:
            self._dispatcher.submit(work, result.success, on_error)
        except Exception as e:
            on_error(e)

    async def invoke(self, method: str, arguments: Any = None) -> Any:
        """
        Call a method from a coroutine.

        Returns:
            The method's success value

        Raises:
            MethodCallError: If the method reports an error or is unknown
        """
        future = asyncio.get_running_loop().create_future()
        self.on_method_call(MethodCall(method, arguments), FutureMethodResult(future))
        return await future

    def _prepare_save_as_jpeg(self, arguments: Any) -> Callable[[], str]:
        request = parse_arguments(SaveAsJpegArguments, arguments).to_request()
        self._logger.debug(
            "saveAsJpeg",
            source=request.source_path,
            destination=request.destination_path,
            quality=request.quality,
            bound=str(request.bound),
            policy=request.policy,
        )

        def work() -> str:
            return self._transcoding_service.transcode(request).path

        return work

    def _prepare_get_image_properties(self, arguments: Any) -> Callable[[], Dict[str, int]]:
        parsed = parse_arguments(GetImagePropertiesArguments, arguments)

        def work() -> Dict[str, int]:
            return self._properties_service.get_properties(parsed.image_file).model_dump()

        return work
