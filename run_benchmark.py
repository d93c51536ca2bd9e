# run_benchmark.py
"""
공통 러너:
- config.yaml 읽고 iris 데이터 로드
- 하이퍼파라미터 grid + seed 구성
- 실험별로 최적화 지표만 바꿔서 5-fold CV grid search
  (기본 Accuracy → Kappa → custom newAccuracyMetric)
- 결과 테이블 + confusion matrix 출력, 실험 간 비교 그래프
"""

from __future__ import annotations

import argparse
import logging
import random
from typing import Any, Dict, List

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')  # 화면에 띄우지 않고 내부적으로만 처리하도록 설정
import matplotlib.pyplot as plt

from rfmetric import preprocessing as prep_mod
from rfmetric.evaluation import compute_metrics
from rfmetric.logging_config import setup_logging
from rfmetric.tuning import train_model

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------
# Utils
# ---------------------------------------------------------------

def load_config(path: str) -> Dict[str, Any]:
    import yaml
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)

def set_global_seed(seed: int) -> None:
    random.seed(seed)
    np.random.seed(seed)


# ---------------------------------------------------------------
# 출력
# ---------------------------------------------------------------

def print_experiment_pretty(name: str, result: Dict[str, Any], positive_class: str = "virginica") -> None:
    print(f"\n=== {name} ===")

    # 1) 후보별 CV 결과 (mean, SD)
    print("[Resampling results across tuning parameters]")
    with pd.option_context("display.max_columns", None, "display.width", 160):
        print(result["results"].round(4).to_string(index=False))

    # 2) 최적화에 사용된 지표
    print(f"\n  metric     : {result['metric']}")
    print(f"  best score : {result['best_score']:.4f}")
    print(f"  best params: {result['best_params']}")

    # 3) 선택된 모델의 cross-validated confusion matrix
    print("\n  Cross-Validated Confusion Matrix")
    print("  (entries are percentual average cell counts across resamples)\n")
    print(result["confusion_matrix"].round(1).to_string())
    print(f"\n  Accuracy (average) : {result['cv_accuracy']:.4f}")

    # 4) held-out 예측 전체 기준 지표
    preds = result["predictions"]
    m = compute_metrics(preds["obs"], preds["pred"], positive_class)
    print(f"  Sensitivity ({positive_class}) : {m['sensitivity']:.4f}")
    print("\n  Classification report (held-out predictions):")
    print(m["classification_report"])


def visualize_results(records: List[Dict[str, Any]], show_plots: bool = True) -> pd.DataFrame:
    rows = []
    for r in records:
        res = r["result"]
        rows.append({
            "experiment": r["name"],
            "metric": res["metric"],
            "best_score": res["best_score"],
            "cv_accuracy": res["cv_accuracy"],
            "best_params": res["best_params"],
        })

    df = pd.DataFrame(rows)

    print("\n=== Summary (rounded) ===")
    with pd.option_context("display.max_columns", None, "display.width", 160):
        print(df.round(4).to_string(index=False))

    if show_plots and not df.empty:
        plt.figure(figsize=(7, 5))
        plt.bar(df["experiment"], df["cv_accuracy"])
        plt.title("CV Accuracy of the selected model by optimisation metric")
        plt.xlabel("Experiment")
        plt.ylabel("Accuracy (average)")
        # 가장 낮은 막대도 보이도록 하한을 데이터에서 계산
        plt.ylim(max(0.0, df["cv_accuracy"].min() - 0.05), 1.0)
        plt.tight_layout()
        plt.show()
        plt.close()

    return df


# ---------------------------------------------------------------
# Runner
# ---------------------------------------------------------------

def main(cfg_path: str, only: str | None = None) -> List[Dict[str, Any]]:

    # 1) config + logging + seed
    cfg = load_config(cfg_path)
    setup_logging(cfg)
    seed = cfg.get("random_state", 1234)
    set_global_seed(seed)

    # 2) 데이터셋 load
    X, y = prep_mod.load_data(cfg)
    print(prep_mod.describe_data(X, y))

    # 3) 하이퍼파라미터 grid
    param_grid = prep_mod.expand_grid(cfg.get("grid", {}))
    print("\n[Parameter grid]")
    print(prep_mod.grid_to_frame(param_grid).to_string())

    train_cfg = cfg.get("training", {})
    experiments = cfg.get("experiments", [{"name": "accuracy", "metric": "Accuracy"}])
    if only is not None:
        experiments = [e for e in experiments if e["name"] == only]
        if not experiments:
            raise ValueError(f"experiment '{only}' not found")

    # 4) 실험별로 최적화 지표만 바꿔서 학습
    records = []
    for exp in experiments:
        name = exp["name"]
        logger.info("Training experiment '%s'", name)

        result = train_model(
            X, y, param_grid,
            metric=exp.get("metric", "Accuracy"),
            summary=exp.get("summary", "default"),
            positive_class=exp.get("positive_class", "virginica"),
            n_estimators=train_cfg.get("n_estimators", 500),
            n_splits=train_cfg.get("cv", 5),
            search=train_cfg.get("search", "grid"),
            n_iter=train_cfg.get("n_iter", 10),
            seed=seed,
            verbose=train_cfg.get("verbose", 0),
            n_jobs=train_cfg.get("n_jobs", None),
        )

        records.append({"name": name, "result": result})
        print_experiment_pretty(name, result, exp.get("positive_class", "virginica"))

    visualize_results(records, cfg.get("show_plots", True))
    return records


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", "-c", type=str, default="config.yaml")
    parser.add_argument("--experiment", "-e", type=str, default=None,
                        help="Run only the experiment with this name")

    args = parser.parse_args()
    main(args.config, args.experiment)
