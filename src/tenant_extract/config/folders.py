"""Client folder layout and live folder status."""

from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from tenant_extract.constants import DEFAULT_PROCESSED_ORIGINAL_SUBFOLDER
from tenant_extract.schemas.client import FolderStatus
from tenant_extract.schemas.config import OutputSettings
from tenant_extract.schemas.effective import ClientFolders


def build_client_folders(folder_path: str, output: OutputSettings) -> ClientFolders:
    """Derive a client's folders from its base folder and the global output settings."""
    base = Path(folder_path)
    return ClientFolders(
        base=str(base),
        input=str(base),
        processed_original=str(base / output.processed_original_subfolder),
        processed_enriched=str(base / output.processed_enriched_subfolder),
        csv_path=str(base / output.csv_filename),
    )


@runtime_checkable
class FolderStatusProbe(Protocol):
    """Reports whether a folder exists and how many documents it holds."""

    def probe(self, folder_path: str) -> FolderStatus:
        ...


class FileFolderStatusProbe:
    """Counts PDF files pending in a folder and in its processed subfolder."""

    def __init__(
        self,
        processed_subfolder: str = DEFAULT_PROCESSED_ORIGINAL_SUBFOLDER,
        suffixes: Iterable[str] = (".pdf",),
    ):
        self.processed_subfolder = processed_subfolder
        self.suffixes = tuple(s.lower() for s in suffixes)

    def probe(self, folder_path: str) -> FolderStatus:
        base = Path(folder_path)
        if not base.is_dir():
            return FolderStatus(exists=False)

        processed_dir = base / self.processed_subfolder
        return FolderStatus(
            exists=True,
            pending_count=self._count(base),
            processed_count=self._count(processed_dir) if processed_dir.is_dir() else 0,
        )

    def _count(self, folder: Path) -> int:
        return sum(1 for p in folder.iterdir() if p.is_file() and p.suffix.lower() in self.suffixes)
