# rfmetric/preprocessing.py

from __future__ import annotations
import itertools
from typing import Any, Dict, List, Tuple

import pandas as pd
from sklearn.datasets import load_iris

# =========================================================
# 1. 데이터셋 column 정의
# =========================================================
# 연속형 feature (4개, 단위 cm)
FEATURE_COLS = [
    "Sepal.Length",
    "Sepal.Width",
    "Petal.Length",
    "Petal.Width",
]

TARGET_COL = "Species"

# 3개 클래스 - 순서 고정
CLASS_LABELS = ["setosa", "versicolor", "virginica"]


# =========================================================
# 2. 데이터 로드 (번들된 iris 데이터셋)
# =========================================================
def load_data(cfg: Dict[str, Any]) -> Tuple[pd.DataFrame, pd.Series]:
    data_cfg = cfg.get("data", {})
    dataset = data_cfg.get("dataset", "iris")
    target = data_cfg.get("target", TARGET_COL)

    if dataset != "iris":
        raise ValueError(f"Unknown dataset: {dataset}")

    bunch = load_iris(as_frame=True)
    # sklearn feature 이름 → FEATURE_COLS (같은 순서)
    df = bunch.frame.rename(columns=dict(zip(bunch.feature_names, FEATURE_COLS)))

    # 숫자 target(0, 1, 2) → 품종 이름
    df[TARGET_COL] = bunch.target.map(dict(enumerate(bunch.target_names)))
    df = df[FEATURE_COLS + [TARGET_COL]]

    if target not in df.columns:
        raise ValueError(f"target '{target}' not found")

    df = clean_data(df, target)
    return df.drop(columns=[target]), df[target]


# ===========================================================
# 3. 결측치 제거 + target을 범주형으로 고정
# ===========================================================
def clean_data(df: pd.DataFrame, target: str = TARGET_COL) -> pd.DataFrame:
    df = df.copy()
    df = df.dropna().reset_index(drop=True)

    levels = [c for c in CLASS_LABELS if c in set(df[target])]
    extra = sorted(set(df[target]) - set(levels))
    df[target] = pd.Categorical(df[target], categories=levels + extra, ordered=True)

    return df


def describe_data(X: pd.DataFrame, y: pd.Series, n_head: int = 6) -> str:
    """Text summary of the dataset: shape, dtypes, first rows, class counts."""
    df = X.copy()
    df[y.name] = y

    lines = [f"DataFrame: {df.shape[0]} rows x {df.shape[1]} columns"]
    for col in df.columns:
        lines.append(f"  {col:<13} {df[col].dtype}")
    lines.append("")
    lines.append(df.head(n_head).to_string())
    lines.append("")
    lines.append(y.value_counts(sort=False).to_string())
    return "\n".join(lines)


# ===========================================================
# 4. 하이퍼파라미터 grid (Cartesian product)
# ===========================================================
def expand_grid(grid_cfg: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    - 설정된 값들의 모든 조합을 dict 리스트로 반환
    - 첫 번째 파라미터가 가장 빠르게 변함 (expand.grid 순서)
    - 스칼라 값은 원소 1개짜리 리스트로 취급
    """
    names = list(grid_cfg.keys())
    values = []
    for name in names:
        v = grid_cfg[name]
        v = list(v) if isinstance(v, (list, tuple)) else [v]
        if not v:
            raise ValueError(f"grid parameter '{name}' has no values")
        values.append(v)

    # itertools.product는 마지막 원소가 가장 빠르게 변하므로 역순으로 돌림
    grid = []
    for combo in itertools.product(*reversed(values)):
        grid.append(dict(zip(names, reversed(combo))))
    return grid


def grid_to_frame(grid: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(grid, index=range(1, len(grid) + 1))
