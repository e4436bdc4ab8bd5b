"""
Transform Service - Business logic for transform pipelines.

Runs a request's operations on a fresh ImageSession and reports the
outcome as a TransformResult instead of raising, so callers can inspect
failures without catching the core's exceptions.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, TypeVar, Union

from imagehandler.core.drivers import DriverSettings
from imagehandler.core.enums import ImageFormat
from imagehandler.core.exceptions import ImageHandlerError
from imagehandler.core.session import EncodedImage, ImageSession
from imagehandler.core.utils.enum_converter import enum_to_string
from imagehandler.schemas import ErrorInfo, RenderRequest, SaveRequest, TransformResult

logger = logging.getLogger(__name__)

# Error kind for argument errors outside the exception taxonomy (plain ValueError)
INVALID_ARGUMENT = "invalid_argument"

# Operation fields that name files on the server
PATH_FIELDS = ("file", "font_file")

RequestT = TypeVar("RequestT", bound=RenderRequest)


def resolve_within(root: Path, value: Union[str, Path]) -> str:
    """
    Resolve value against root, rejecting paths that escape it.

    Relative paths are taken relative to root; symlinks and ".." are
    resolved before the check.

    Raises:
        ValueError: if the resolved path is outside root
    """
    path = (root / value).resolve()
    if path != root and root not in path.parents:
        raise ValueError(f"Path {str(value)!r} is outside the storage root")
    return str(path)


class TransformService:
    """
    Service for transform pipelines.

    One session is created per request and closed afterwards.
    """

    def __init__(
        self,
        settings: Optional[DriverSettings] = None,
        storage_root: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize transform service.

        Args:
            settings: Driver settings used for every session
            storage_root: Directory every request path must stay within
                (None = paths are used as given)
        """
        self.settings = settings or DriverSettings()
        self.storage_root = Path(storage_root).resolve() if storage_root is not None else None

    def _confine(self, request: RequestT) -> RequestT:
        """Copy of request with every path resolved inside the storage root."""
        if self.storage_root is None:
            return request

        root = self.storage_root
        operations = []
        for operation in request.operations:
            update = {
                name: resolve_within(root, getattr(operation, name))
                for name in PATH_FIELDS
                if getattr(operation, name, None)
            }
            operations.append(operation.model_copy(update=update) if update else operation)

        update = {"source": resolve_within(root, request.source), "operations": operations}
        if isinstance(request, SaveRequest):
            update["destination"] = resolve_within(root, request.destination)
        return request.model_copy(update=update)

    def _execute(
        self,
        request: RequestT,
        finish: Callable[[ImageSession, RequestT], Tuple[ImageFormat, Optional[str]]],
    ) -> TransformResult:
        """
        Template method shared by apply() and render().

        Confines the request paths, loads the source, applies every
        operation in order, then hands the session and the confined request
        to finish, which writes or encodes the result and returns
        (output format, output path).
        """
        try:
            request = self._confine(request)
            with ImageSession(request.driver, self.settings) as session:
                session.load(request.source)
                for operation in request.operations:
                    operation.apply(session)
                image_format, path = finish(session, request)

                return TransformResult(
                    success=True,
                    width=session.width,
                    height=session.height,
                    format=enum_to_string(image_format),
                    mime_type=image_format.mime_type,
                    path=path,
                )
        except ImageHandlerError as e:
            logger.warning(f"Transform of {request.source} failed ({e.kind}): {e}")
            return TransformResult(success=False, error=ErrorInfo(kind=e.kind, message=str(e)))
        except ValueError as e:
            logger.warning(f"Transform of {request.source} rejected: {e}")
            return TransformResult(
                success=False, error=ErrorInfo(kind=INVALID_ARGUMENT, message=str(e))
            )

    def apply(self, request: SaveRequest) -> TransformResult:
        """
        Apply operations and save the result.

        Returns:
            TransformResult with the written path, or the error
        """
        logger.debug(f"TransformService.apply: {request.source} -> {request.destination}")

        def finish(session: ImageSession, confined: SaveRequest) -> Tuple[ImageFormat, Optional[str]]:
            image_format = session.resolve_format(confined.output_format)
            session.save(confined.destination, image_format, confined.quality, touch=confined.touch)
            return image_format, str(session.saved_path)

        return self._execute(request, finish)

    def render(self, request: RenderRequest) -> Tuple[Optional[EncodedImage], TransformResult]:
        """
        Apply operations and encode the result in memory.

        Returns:
            Tuple of (encoded image, result); the image is None on failure
        """
        logger.debug(f"TransformService.render: {request.source}")
        encoded = []

        def finish(session: ImageSession, confined: RenderRequest) -> Tuple[ImageFormat, Optional[str]]:
            rendered = session.render(confined.output_format, confined.quality)
            encoded.append(rendered)
            return rendered.format, None

        result = self._execute(request, finish)
        return (encoded[0] if encoded else None), result
