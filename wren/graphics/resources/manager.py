# wren/graphics/resources/manager.py
import logging
from queue import Empty, Queue
from typing import Dict, List, Tuple

import moderngl

from wren.errors import GeometryError
from wren.geometry.buffer import GeometryBuffer
from wren.graphics.resources.mesh import GPUMesh, upload_geometry
from wren.settings import DEFAULT_SETTINGS, GeometrySettings
from wren.types import MeshId

logger = logging.getLogger(__name__)


class GPUResourceManager:
    """
    Syncs CPU geometry built on worker threads to GPU memory.

    submit() may be called from any thread. sync(), get_mesh() and the
    release methods must run on the thread that owns the context.
    """

    def __init__(
        self,
        ctx: moderngl.Context,
        settings: GeometrySettings = DEFAULT_SETTINGS,
    ) -> None:
        self.ctx = ctx
        self.settings = settings

        self._pending: "Queue[Tuple[MeshId, GeometryBuffer]]" = Queue()
        self._meshes: Dict[MeshId, GPUMesh] = {}

    def submit(self, mesh_id: MeshId, geometry: GeometryBuffer) -> None:
        """
        Queue a snapshot of the buffer for upload. Thread-safe.
        Later edits to `geometry` do not affect the queued copy.
        """
        self._pending.put((mesh_id, geometry.copy()))

    def sync(self) -> List[MeshId]:
        """
        Called on the render thread every frame.
        Uploads queued geometry and returns the ids that were (re)uploaded.
        """
        uploaded: List[MeshId] = []
        while True:
            try:
                mesh_id, geometry = self._pending.get_nowait()
            except Empty:
                break

            try:
                mesh = upload_geometry(self.ctx, geometry, self.settings)
            except GeometryError as e:
                logger.warning("Skipping upload of mesh '%s': %s", mesh_id, e)
                continue

            old = self._meshes.get(mesh_id)
            if old is not None:
                old.release()
            self._meshes[mesh_id] = mesh
            uploaded.append(mesh_id)

        if uploaded:
            logger.debug("sync: uploaded %d mesh(es)", len(uploaded))
        return uploaded

    def get_mesh(self, mesh_id: MeshId) -> GPUMesh:
        """Retrieve an uploaded mesh."""
        try:
            return self._meshes[mesh_id]
        except KeyError:
            raise KeyError(f"Mesh '{mesh_id}' not found")

    def __contains__(self, mesh_id: MeshId) -> bool:
        return mesh_id in self._meshes

    def release_mesh(self, mesh_id: MeshId) -> None:
        mesh = self._meshes.pop(mesh_id, None)
        if mesh is not None:
            mesh.release()

    def release_all(self) -> None:
        for mesh in self._meshes.values():
            mesh.release()
        self._meshes.clear()
