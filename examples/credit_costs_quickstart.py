from time import perf_counter

import numpy as np
from sklearn.datasets import load_breast_cancer
from sklearn.model_selection import train_test_split

from pyboosters import AdaCost, AdaCostB1, AdaCostB2, CSB2, AdaBoostM1, CostMatrix

X, y = load_breast_cancer(return_X_y=True)
X_tr, X_te, y_tr, y_te = train_test_split(X, y, test_size=0.3, stratify=y, random_state=42)

# missing a malignant case (class 0) is five times worse than a false alarm
costs = CostMatrix.loads("""
% true \\ predicted
2 2
0 5
1 0
""")


def total_cost(pred):
    return float(costs.values[y_te, pred].sum())


for clf in (
    AdaBoostM1(initial_iterations=20),
    CSB2(cost_matrix=costs, initial_iterations=20),
    AdaCost(cost_matrix=costs, initial_iterations=20),
    AdaCostB1(cost_matrix=costs, initial_iterations=20),
    AdaCostB2(cost_matrix=costs, initial_iterations=20, combination="mvc"),
):
    t0 = perf_counter(); clf.fit(X_tr, y_tr); dt = perf_counter() - t0
    pred = clf.predict(X_te)
    print(f"{type(clf).__name__:10s} fit: {dt:.3f} s  accuracy: {np.mean(pred == y_te):.3f}"
          f"  total cost: {total_cost(pred):.0f}")
