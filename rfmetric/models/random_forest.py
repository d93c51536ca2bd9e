# ------------------------------------------------------------
# 모델: RandomForestClassifier
#    - max_features: 각 분할 시 고려할 특성 수 (feature subset size)
#    - min_samples_leaf: 리프 최소 샘플 수 (minimum leaf size)
#    - criterion: 분할 규칙 (split rule)
# ------------------------------------------------------------
from typing import Any, Dict

from sklearn.ensemble import RandomForestClassifier


def build_model(**overrides) -> RandomForestClassifier:
    """RandomForest 기본값 + 필요한 것만 덮어쓰기"""
    params: Dict[str, Any] = dict(
        n_estimators=500,  # 트리 개수
        max_features="sqrt",
        min_samples_leaf=1,
        criterion="gini",
        random_state=1234,  # 재현성 고정
        n_jobs=-1  # 멀티코어 활용
    )
    params.update(overrides)
    return RandomForestClassifier(**params)
