import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from notify_core.config.settings import settings
from notify_core.domain.exceptions import BusinessError
from notify_core.domain.models import ConversationReference, PagedData
from notify_core.domain.storage import ConversationReferenceStore


class LocalConversationReferenceStore(ConversationReferenceStore):
    """基于单个 JSON 文件的会话引用存储。

    整个文件是一个 key -> reference 的映射，每次写入都读出全量、合并后整体覆盖，
    没有任何锁：仅适用于单进程、低并发写入的场景。
    """

    def __init__(self, file_dir: str | Path | None = None, file_name: Optional[str] = None):
        root = Path(file_dir or settings.storage_dir).resolve()
        self._file_path = root / (file_name or settings.notification_store_filename)

    @property
    def file_path(self) -> Path:
        return self._file_path

    async def write(self, changes: Dict[str, ConversationReference]) -> None:
        await asyncio.to_thread(self._write_sync, changes)

    async def read(self, keys: List[str]) -> Dict[str, ConversationReference]:
        data = await asyncio.to_thread(self._read_file)
        return {key: data[key] for key in keys if key in data}

    async def delete(self, keys: List[str]) -> None:
        await asyncio.to_thread(self._delete_sync, keys)

    async def list(
        self,
        page_size: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> PagedData[ConversationReference]:
        data = await asyncio.to_thread(self._read_file)
        keys = sorted(data)
        if continuation_token:
            keys = [k for k in keys if k > continuation_token]
        if not page_size or len(keys) <= page_size:
            return PagedData(data=[data[k] for k in keys], continuation_token="")
        page = keys[:page_size]
        return PagedData(data=[data[k] for k in page], continuation_token=page[-1])

    def _write_sync(self, changes: Dict[str, ConversationReference]) -> None:
        data = self._read_file()
        data.update(changes)
        self._write_file(data)

    def _delete_sync(self, keys: List[str]) -> None:
        if not self._file_path.exists():
            return
        data = self._read_file()
        for key in keys:
            data.pop(key, None)
        self._write_file(data)

    def _read_file(self) -> Dict[str, Any]:
        if not self._file_path.exists():
            return {}
        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e), path=str(self._file_path))
        if not isinstance(data, dict):
            raise BusinessError(
                code="STORE_READ_ERROR",
                message="store file is not a JSON object",
                path=str(self._file_path),
            )
        return data

    def _write_file(self, data: Dict[str, Any]) -> None:
        tmp_path = self._file_path.with_name(f"{self._file_path.name}.{uuid4().hex}.tmp")
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._file_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e), path=str(self._file_path))
