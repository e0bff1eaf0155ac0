"""
Model definition, penalty grid search and selection tests.

Run with: pytest tests/test_tuning.py -v
"""
import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import ElasticNet

from loan_rate.training_pipeline.model import (
    LassoSpec,
    build_workflow,
    finalize_workflow,
    penalty_grid,
    validate_penalty_grid
)
from loan_rate.training_pipeline.split import make_folds
from loan_rate.training_pipeline.tune_grid import (
    TuningResult,
    run_grid_search,
    select_best,
    select_by_one_std_err
)

GRID = [1e-6, 10 ** -4.5, 1e-3, 10 ** -1.5, 1e-1]


def _tuning_result(grid, fold_values) -> TuningResult:
    """Build a TuningResult from per-penalty lists of fold RMSEs."""
    records = [
        {'penalty': penalty, 'fold': fold_id, 'rmse': value, 'rsq': 1.0 / value, 'mae': value}
        for penalty, values in zip(grid, fold_values)
        for fold_id, value in enumerate(values, start=1)
    ]
    return TuningResult(fold_metrics=pd.DataFrame(records))


class TestModelDefinition:
    """Tests for the lasso specification and workflow."""

    def test_lasso_is_pure_l1_elastic_net(self):
        model = LassoSpec(penalty=0.01).build()

        assert isinstance(model, ElasticNet)
        assert model.alpha == 0.01
        assert model.l1_ratio == 1.0

    def test_negative_penalty_rejected(self):
        with pytest.raises(ValueError):
            LassoSpec(penalty=-1.0).build()

    def test_invalid_mixture_rejected(self):
        with pytest.raises(ValueError):
            LassoSpec(penalty=0.1, mixture=1.5).build()

    def test_workflow_ends_with_model(self, roles):
        workflow = build_workflow(roles)

        assert workflow.steps[-1][0] == 'model'
        assert [name for name, _ in workflow.steps[:-1]] == ['select', 'novel', 'dummy', 'nzv', 'normalize']

    def test_finalize_binds_penalty_without_mutating(self, roles):
        """finalize_workflow returns an unfitted copy with the chosen penalty."""
        workflow = build_workflow(roles)

        finalized = finalize_workflow(workflow, 1e-3)

        assert finalized is not workflow
        assert finalized.named_steps['model'].alpha == 1e-3
        assert workflow.named_steps['model'].alpha == 0.0
        assert not hasattr(finalized.named_steps['model'], 'coef_')

    def test_larger_penalty_zeroes_more_coefficients(self, loan_split, roles):
        """Heavier shrinkage produces a sparser model."""
        light = finalize_workflow(build_workflow(roles), 1e-4).fit(loan_split.X_train, loan_split.y_train)
        heavy = finalize_workflow(build_workflow(roles), 1.0).fit(loan_split.X_train, loan_split.y_train)

        n_zero_light = (light.named_steps['model'].coef_ == 0).sum()
        n_zero_heavy = (heavy.named_steps['model'].coef_ == 0).sum()

        assert n_zero_heavy > n_zero_light


class TestPenaltyGrid:
    """Tests for grid construction and validation."""

    def test_regular_log_grid(self):
        grid = penalty_grid(levels=3, low=-4, high=0)

        np.testing.assert_allclose(grid, [1e-4, 1e-2, 1.0])

    def test_validate_sorts(self):
        assert validate_penalty_grid([0.1, 1e-3, 0.0]) == [0.0, 1e-3, 0.1]

    @pytest.mark.parametrize("grid", [[], [-0.1, 0.2], [0.1, 0.1]])
    def test_invalid_grids(self, grid):
        with pytest.raises(ValueError):
            validate_penalty_grid(grid)


class TestGridSearch:
    """Tests for the cross-validated grid search."""

    @pytest.fixture(scope="class")
    def search(self, loan_split, roles):
        folds = make_folds(loan_split.train, n_folds=3, random_state=123)
        grid = [1e-4, 1e-2, 0.5]
        result = run_grid_search(
            build_workflow(roles),
            loan_split.X_train,
            loan_split.y_train,
            folds,
            grid=grid,
            n_jobs=1,
            random_state=123
        )
        return result, grid, folds

    def test_every_pair_evaluated_once(self, search):
        """Each (penalty, fold) pair appears exactly once."""
        result, grid, folds = search

        pairs = list(zip(result.fold_metrics['penalty'], result.fold_metrics['fold']))

        assert len(pairs) == len(grid) * len(folds)
        assert len(set(pairs)) == len(pairs)
        assert result.penalties == grid

    def test_aggregate_is_mean_of_folds(self, search):
        """The aggregated metric equals the mean of the k fold metrics."""
        result, grid, _ = search
        summary = result.summary('rmse')

        for row in summary.itertuples():
            fold_values = result.fold_metrics.loc[result.fold_metrics['penalty'] == row.penalty, 'rmse']
            assert row.mean == pytest.approx(fold_values.mean())
            assert row.n == 3

    def test_study_ran_one_trial_per_penalty(self, search):
        result, grid, _ = search

        assert len(result.study.trials) == len(grid)
        assert sorted(t.params['penalty'] for t in result.study.trials) == grid

    def test_metrics_are_non_negative(self, search):
        result, _, _ = search

        assert (result.fold_metrics['rmse'] >= 0).all()
        assert (result.fold_metrics['mae'] >= 0).all()

    def test_parallel_matches_sequential(self, loan_split, roles, search):
        """Fold-level parallelism gives the same fold metrics."""
        result, grid, folds = search

        parallel = run_grid_search(
            build_workflow(roles), loan_split.X_train, loan_split.y_train,
            folds, grid=grid, n_jobs=2, random_state=123
        )

        pd.testing.assert_frame_equal(parallel.fold_metrics, result.fold_metrics)

    def test_no_folds_rejected(self, loan_split, roles):
        with pytest.raises(ValueError):
            run_grid_search(build_workflow(roles), loan_split.X_train, loan_split.y_train, [], grid=[0.1])


class TestSelection:
    """Tests for choosing the penalty."""

    def test_selects_minimum_rmse(self):
        """Aggregated RMSEs [5.0, 4.9, 4.8, 5.2, 6.0] select the third penalty."""
        result = _tuning_result(GRID, [[m] * 5 for m in [5.0, 4.9, 4.8, 5.2, 6.0]])

        assert select_best(result) == GRID[2]

    def test_ties_prefer_largest_penalty(self):
        """Equal best scores resolve to the sparser model."""
        result = _tuning_result(GRID, [[m] * 5 for m in [5.0, 4.8, 4.8, 5.2, 6.0]])

        assert select_best(result) == GRID[2]

    def test_higher_is_better_metric(self):
        """rsq is maximised rather than minimised."""
        result = _tuning_result(GRID, [[m] * 5 for m in [5.0, 4.9, 4.8, 5.2, 6.0]])

        assert select_best(result, metric='rsq') == GRID[2]

    def test_unknown_metric(self):
        result = _tuning_result(GRID, [[1.0]] * 5)

        with pytest.raises(ValueError, match="Unknown metric"):
            select_best(result, metric='auc')

    def test_one_std_err_prefers_simpler_model(self):
        """The largest penalty within one standard error of the best is chosen."""
        grid = [0.001, 0.01, 0.1]
        result = _tuning_result(grid, [[4.0, 5.0, 6.0], [5.3, 5.4, 5.5], [6.0, 6.0, 6.0]])

        assert select_best(result) == 0.001
        assert select_by_one_std_err(result) == 0.01

    def test_one_std_err_never_below_best(self):
        result = _tuning_result(GRID, [[m] * 5 for m in [5.0, 4.9, 4.8, 5.2, 6.0]])

        assert select_by_one_std_err(result) >= select_best(result)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
