from pathlib import Path
from typing import Any, Iterable

import pandas as pd


def read_df(path: str) -> pd.DataFrame:
    if path.endswith(".parquet"):
        return pd.read_parquet(path)
    return pd.read_csv(path)


def write_df(df: pd.DataFrame, path: str):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if path.endswith(".parquet"):
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)


def load_reference_tables(directory: str, tables: Iterable[str]) -> dict[str, list[dict[str, Any]]]:
    """
    Read <table>.parquet or <table>.csv for each requested table name.

    Missing files are skipped. NaN cells become None so optional columns
    (state, max_amount, city) map onto nullable fields.
    """
    base = Path(directory)
    out: dict[str, list[dict[str, Any]]] = {}
    for table in tables:
        for suffix in (".parquet", ".csv"):
            path = base / f"{table}{suffix}"
            if path.exists():
                df = read_df(str(path))
                if "zip_code" in df.columns:
                    # CSV reads 94000 back as an int
                    df["zip_code"] = df["zip_code"].astype(str)
                df = df.astype(object).where(pd.notna(df), None)
                out[table] = df.to_dict(orient="records")
                break
    return out
