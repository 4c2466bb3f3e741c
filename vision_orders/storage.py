# vision_orders/storage.py
# Storage collaborator. The orchestrator only needs something that accepts
# (bucket, path, bytes, content type, metadata) and hands back a descriptor;
# LocalDirectoryStorage is the filesystem sink used by the batch CLI.

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol


@dataclass
class StoredFile:
    id: str
    name: str
    path: str
    bucket: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None


class StorageAdapter(Protocol):
    def upload(self, bucket: str, path: str, buffer: bytes, content_type: str,
               metadata: Optional[dict] = None) -> StoredFile:
        ...


def normalize_folder(folder: Optional[str], default='vision') -> str:
    if not folder:
        return default
    return folder.strip().strip('/') or default


def build_storage_path(folder: Optional[str], file_name: str) -> str:
    folder = (folder or '').strip('/')
    file_name = file_name.lstrip('/')
    return f"{folder}/{file_name}" if folder else file_name


class LocalDirectoryStorage:
    """Buckets are subdirectories of root; metadata lands in a <file>.meta.json sidecar."""

    def __init__(self, root):
        self.root = Path(root)

    def upload(self, bucket: str, path: str, buffer: bytes, content_type: str,
               metadata: Optional[dict] = None) -> StoredFile:
        target = (self.root / bucket / path).resolve()
        bucket_root = (self.root / bucket).resolve()
        if bucket_root not in target.parents:
            raise ValueError(f"storage path escapes bucket: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(buffer)
        sidecar = {'contentType': content_type, 'metadata': metadata or {}}
        target.with_name(target.name + '.meta.json').write_text(json.dumps(sidecar, indent=2), encoding='utf-8')
        return StoredFile(
            id=hashlib.sha1(f"{bucket}/{path}".encode('utf-8')).hexdigest(),
            name=target.name,
            path=path,
            bucket=bucket,
            size=len(buffer),
            mime_type=content_type,
        )
