import logging

from PySide6.QtCore import QCoreApplication, QEvent, QObject, QPoint, Signal, Slot
from PySide6.QtGui import QImage

from photostack.core.codec import (
    DecodeRequest,
    DecodeTarget,
    DecodeThread,
    ImageDecoder,
    encode_image,
)
from photostack.core.document import Document
from photostack.core.drawing_context import DrawingContext, ToolKind
from photostack.core.layer import Layer
from photostack.core.services.document_service import DocumentService
from photostack.core.settings_controller import SettingsController
from photostack.core.transform import FlipAxis, TransformEngine
from photostack.core.undo import HistoryManager
from photostack.tools import BaseTool, StrokeResult, registry


logger = logging.getLogger(__name__)


class DocumentController(QObject):
    """Owns the document and routes every edit through the history.

    Each mutating method returns ``True`` when it changed the document, in
    which case exactly one snapshot was recorded. Rejected requests raise
    before touching anything; no-op requests return ``False`` and record
    nothing.
    """

    document_changed = Signal()
    undo_stack_changed = Signal()
    upload_finished = Signal()
    layer_imported = Signal(object)
    decode_failed = Signal(str)
    layer_image_changed = Signal(int)

    def __init__(self, settings: SettingsController | None = None, document_service: DocumentService | None = None):
        super().__init__()
        self.settings = settings or SettingsController()
        self.document: Document | None = None
        self._layer_manager = None
        self.drawing_context = DrawingContext()
        self.decoder = ImageDecoder()

        self.document_service = document_service or DocumentService()
        self.document_service.app = self

        self._decode_threads: dict[int, DecodeThread] = {}
        self._latest_upload_id: int | None = None
        self._tools: dict[ToolKind, BaseTool] = {}
        self._stroke_tool: BaseTool | None = None

        document = Document(
            self.settings.canvas_default_width,
            self.settings.canvas_default_height,
        )
        self.history = HistoryManager(document, self.settings.history_capacity)
        self.history.history_changed.connect(self.undo_stack_changed)
        self.transform_engine = TransformEngine(document)
        self.attach_document(document)

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------
    def attach_document(self, document: Document) -> None:
        """Swap to *document* and start a fresh history at its state."""

        self._cancel_stroke()
        self._disconnect_layer_manager()
        self.document = document
        self.history.document = document
        self.transform_engine.document = document
        self._bind_layer_manager(document.layer_manager)

        self.history.clear()
        self.history.save_state()
        self.document_changed.emit()

    def new_document(self, width: int | None = None, height: int | None = None) -> Document:
        width = self.settings.canvas_default_width if width is None else width
        height = self.settings.canvas_default_height if height is None else height
        document = Document(width, height)
        self.attach_document(document)
        logger.info("Created blank %dx%d document", width, height)
        return document

    def _bind_layer_manager(self, layer_manager):
        self._layer_manager = layer_manager
        layer_manager.layer_image_changed.connect(self._on_layer_image_changed)

    def _disconnect_layer_manager(self):
        layer_manager = self._layer_manager
        if layer_manager is None:
            return
        layer_manager.layer_image_changed.disconnect(self._on_layer_image_changed)
        self._layer_manager = None

    @Slot(int)
    def _on_layer_image_changed(self, index):
        self.layer_image_changed.emit(index)

    @property
    def layer_manager(self):
        return self.document.layer_manager

    # ------------------------------------------------------------------
    # Upload / decode
    # ------------------------------------------------------------------
    def upload_image(self, data: bytes) -> DecodeRequest:
        """Decode *data* on a worker thread and replace the document with it.

        Emits ``upload_finished`` on success or ``decode_failed`` on error.
        The result is dropped if the active layer's base changes first, or
        if a later upload was started in the meantime.
        """
        layer = self.layer_manager.active_layer
        request = DecodeRequest(DecodeTarget.DOCUMENT, layer.uid, layer.generation)
        self._latest_upload_id = request.request_id
        self._start_decode(request, data)
        return request

    def upload_image_sync(self, data: bytes) -> Document:
        image = self.decoder.decode(data)
        self._replace_with_image(image)
        self.upload_finished.emit()
        return self.document

    def import_image_as_layer(self, data: bytes, name: str = "Imported") -> DecodeRequest:
        """Decode *data* on a worker thread into a new layer on top."""
        layer = self.layer_manager.active_layer
        request = DecodeRequest(DecodeTarget.NEW_LAYER, layer.uid, None, name=name)
        self._start_decode(request, data)
        return request

    def has_pending_decodes(self) -> bool:
        return bool(self._decode_threads)

    def wait_for_decodes(self) -> None:
        """Block until every worker thread has finished running."""
        for thread in list(self._decode_threads.values()):
            thread.wait()

    def shutdown(self) -> None:
        """Finish outstanding decodes and release their worker threads."""
        self._cancel_stroke()
        self.wait_for_decodes()
        # Deliver the queued completion signals, then flush deleteLater().
        QCoreApplication.processEvents()
        for thread in self._decode_threads.values():
            thread.deleteLater()
        self._decode_threads.clear()
        QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete.value)

    def _start_decode(self, request: DecodeRequest, data: bytes) -> None:
        thread = DecodeThread(request, bytes(data), self.decoder)
        thread.decode_complete.connect(self._on_decode_complete)
        thread.decode_failed.connect(self._on_decode_failed)
        thread.finished.connect(self._on_decode_thread_finished)
        self._decode_threads[request.request_id] = thread
        logger.debug("Started decode %d (%s)", request.request_id, request.target.name)
        thread.start()

    def _is_request_current(self, request: DecodeRequest) -> bool:
        if request.target is DecodeTarget.DOCUMENT and request.request_id != self._latest_upload_id:
            return False
        layer = self.layer_manager.find_layer_by_uid(request.layer_uid)
        if layer is None:
            return False
        if request.generation is not None and layer.generation != request.generation:
            return False
        return True

    @Slot(object, object)
    def _on_decode_complete(self, request: DecodeRequest, image: QImage) -> None:
        if not self._is_request_current(request):
            logger.debug("Dropping stale decode %d", request.request_id)
            return
        if request.target is DecodeTarget.DOCUMENT:
            self._replace_with_image(image, request.name)
            self.upload_finished.emit()
        else:
            layer = self.layer_manager.add_layer_with_image(image, request.name)
            self._commit("import layer")
            self.layer_imported.emit(layer)

    @Slot(object, str)
    def _on_decode_failed(self, request: DecodeRequest, message: str) -> None:
        self.decode_failed.emit(message)

    @Slot()
    def _on_decode_thread_finished(self) -> None:
        thread = self.sender()
        for request_id, pending in list(self._decode_threads.items()):
            if pending is thread:
                del self._decode_threads[request_id]
                pending.deleteLater()
                break

    def _replace_with_image(self, image: QImage, name: str = "Background") -> None:
        document = Document.from_image(image, name)
        self.attach_document(document)
        logger.info("Loaded %dx%d image", document.width, document.height)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def _commit(self, description: str) -> None:
        self.history.save_state()
        logger.debug("Committed %s", description)
        self.document_changed.emit()

    @Slot()
    def undo(self) -> bool:
        self._cancel_stroke()
        if not self.history.undo():
            return False
        self.document_changed.emit()
        return True

    @Slot()
    def redo(self) -> bool:
        self._cancel_stroke()
        if not self.history.redo():
            return False
        self.document_changed.emit()
        return True

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------
    def add_layer(self, name: str | None = None) -> Layer:
        layer = self.layer_manager.add_layer(name)
        self._commit("add layer")
        return layer

    def duplicate_layer(self, index: int) -> Layer:
        layer = self.layer_manager.duplicate_layer(index)
        self._commit("duplicate layer")
        return layer

    def delete_layer(self, index: int) -> Layer:
        layer = self.layer_manager.remove_layer(index)
        self._commit("delete layer")
        return layer

    def set_active_layer(self, index: int) -> bool:
        return self._commit_if(self.layer_manager.select_layer(index), "select layer")

    def set_visibility(self, index: int, visible: bool) -> bool:
        return self._commit_if(self.layer_manager.set_visibility(index, visible), "visibility")

    def set_opacity(self, index: int, value) -> bool:
        return self._commit_if(self.layer_manager.set_opacity(index, value), "opacity")

    def rename_layer(self, index: int, name: str) -> bool:
        return self._commit_if(self.layer_manager.rename_layer(index, name), "rename")

    def move_layer_up(self, index: int) -> bool:
        return self._commit_if(self.layer_manager.move_layer_up(index), "move layer up")

    def move_layer_down(self, index: int) -> bool:
        return self._commit_if(self.layer_manager.move_layer_down(index), "move layer down")

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------
    def set_adjustment(self, index: int, field: str, value) -> bool:
        return self._commit_if(self.layer_manager.set_adjustment(index, field, value), f"adjust {field}")

    def apply_preset(self, index: int, name: str) -> bool:
        return self._commit_if(self.layer_manager.apply_preset(index, name), f"preset {name}")

    def reset_adjustments(self, index: int) -> bool:
        return self._commit_if(self.layer_manager.reset_adjustments(index), "reset adjustments")

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def rotate(self, degrees: int) -> bool:
        return self._commit_if(self.transform_engine.rotate(degrees), f"rotate {degrees}")

    def flip(self, axis: FlipAxis | str) -> bool:
        return self._commit_if(self.transform_engine.flip(axis), "flip")

    def crop(self, x: int, y: int, width: int, height: int) -> bool:
        return self._commit_if(self.transform_engine.crop(x, y, width, height), "crop")

    def _commit_if(self, changed: bool, description: str) -> bool:
        if changed:
            self._commit(description)
        return changed

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def render(self) -> QImage:
        return self.document.render()

    def export(self, fmt: str | None = None) -> bytes:
        """Encode the flattened document; defaults to the configured format."""
        fmt = fmt or self.settings.export_format
        data = encode_image(self.render(), fmt, self.settings.export_jpeg_quality)
        logger.info("Exported %dx%d image as %s (%d bytes)", self.document.width, self.document.height, fmt, len(data))
        return data

    # ------------------------------------------------------------------
    # Strokes
    # ------------------------------------------------------------------
    def tool_for(self, kind: ToolKind | str) -> BaseTool:
        kind = ToolKind(kind)
        tool = self._tools.get(kind)
        if tool is None:
            tool = registry.tool_class(kind)(self.drawing_context)
            tool.stroke_committed.connect(self._on_stroke_committed)
            self._tools[kind] = tool
        return tool

    def begin_stroke(self, x: int, y: int) -> bool:
        if self._stroke_tool is not None:
            return False
        tool = self.tool_for(self.drawing_context.tool)
        if not tool.press(self.layer_manager.active_layer, QPoint(x, y)):
            return False
        self._stroke_tool = tool
        return True

    def continue_stroke(self, x: int, y: int) -> bool:
        if self._stroke_tool is None:
            return False
        return self._stroke_tool.move(QPoint(x, y))

    def end_stroke(self, x: int | None = None, y: int | None = None) -> StrokeResult | None:
        tool = self._stroke_tool
        if tool is None:
            return None
        self._stroke_tool = None
        if x is None or y is None:
            return tool.leave()
        return tool.release(QPoint(x, y))

    def _cancel_stroke(self) -> None:
        if self._stroke_tool is not None:
            self._stroke_tool.cancel()
            self._stroke_tool = None

    @Slot(object)
    def _on_stroke_committed(self, result: StrokeResult) -> None:
        if result.kind is ToolKind.CROP and result.rect is not None:
            rect = result.rect
            self.crop(rect.x(), rect.y(), rect.width(), rect.height())
            return
        if not result.pixels_changed:
            return
        layer = self.layer_manager.find_layer_by_uid(result.layer_uid)
        if layer is None:
            return
        layer.commit_base_edit()
        self._commit(f"{result.kind.value.lower()} stroke")
