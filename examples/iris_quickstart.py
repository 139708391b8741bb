import warnings
from time import perf_counter

from sklearn.datasets import load_iris
from sklearn.model_selection import train_test_split

import pyboosters
from pyboosters import AdaBoostECC, AdaBoostM1W, AdaBoostMH, AdaBoostOC, BoosterAnalyzer

pyboosters.setup_logging()
warnings.simplefilter("always", pyboosters.StoppingCriterionReached)

X, y = load_iris(return_X_y=True)
X_tr, X_te, y_tr, y_te = train_test_split(X, y, test_size=0.3, stratify=y, random_state=42)

for clf in (
    AdaBoostM1W(initial_iterations=20),
    AdaBoostOC(initial_iterations=20, compute_error_bound=True),
    AdaBoostECC(initial_iterations=20, partitioner="even_split", max_partition_retries=3),
    AdaBoostMH(),
):
    t0 = perf_counter(); clf.fit(X_tr, y_tr); dt = perf_counter() - t0
    print(f"{type(clf).__name__:12s} fit: {dt:.3f} s  test accuracy: {clf.score(X_te, y_te):.3f}")

# grow the output-code booster and follow its test error
oc = AdaBoostOC(initial_iterations=5).fit(X_tr, y_tr)
analyzer = BoosterAnalyzer(oc, X_te, y_te)
analyzer.update()
oc.iterate(15)
analyzer.update()
print(analyzer.to_csv())
print(oc.describe())
