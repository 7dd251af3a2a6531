from __future__ import annotations
from pathlib import Path
from typing import Dict, Mapping, Optional
import hashlib
import pandas as pd

def sha256_file(path: Path, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            b = f.read(chunk_size)
            if not b:
                break
            h.update(b)
    return h.hexdigest()

def sha256_frame(df: pd.DataFrame) -> str:
    """Content hash of a frame (column names + row values), independent of the index."""
    h = hashlib.sha256()
    h.update("|".join(map(str, df.columns)).encode("utf-8"))
    row_hashes = pd.util.hash_pandas_object(df, index=False)
    h.update(row_hashes.values.tobytes())
    return h.hexdigest()

def fingerprint_paths(paths: Mapping[str, Optional[Path]]) -> Dict[str, str]:
    """sha256 per named input file; missing or unset paths are skipped."""
    out: Dict[str, str] = {}
    for name, p in paths.items():
        if p is not None and Path(p).exists():
            out[f"{name}_sha256"] = sha256_file(Path(p))
    return out
