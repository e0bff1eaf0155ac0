"""
End-to-end tests for the lasso analysis and its CLI.

Run with: pytest tests/test_end_to_end.py -v
"""
import sys
from unittest.mock import patch

import pytest
from sklearn.utils.validation import check_is_fitted

import run_pipeline
from loan_rate import config
from loan_rate.training_pipeline.train_lasso import run_lasso_analysis
from loan_rate.utils.synthetic import generate_loan_data

GRID = [1e-6, 10 ** -4.5, 1e-3, 10 ** -1.5, 1e-1]


@pytest.fixture(scope="module")
def analysis():
    """1,000 individual loans, 80/20 split, 5 folds, 5 penalties."""
    df = generate_loan_data(n_samples=1000, random_state=123, joint_share=0.0)
    return run_lasso_analysis(df=df, train_prop=0.8, n_folds=5, grid=GRID, random_state=123, n_jobs=1)


class TestLassoAnalysis:
    """Tests for the full analysis run."""

    def test_partitions(self, analysis):
        assert len(analysis.split.train) == 800
        assert len(analysis.split.test) == 200
        assert len(analysis.folds) == 5

    def test_grid_fully_evaluated(self, analysis):
        """25 fold-level fits: every penalty on every fold."""
        assert len(analysis.tuning.fold_metrics) == 25
        assert analysis.tuning.penalties == sorted(GRID)

    def test_single_finalized_model(self, analysis):
        """The selected penalty is bound into one fitted final workflow."""
        model = analysis.final_fit.workflow.named_steps['model']

        check_is_fitted(model)
        assert analysis.best_penalty in GRID
        assert model.alpha == analysis.best_penalty

    def test_selected_penalty_is_best_cv(self, analysis):
        summary = analysis.tuning.summary('rmse')
        best_row = summary.loc[summary['mean'].idxmin()]

        assert analysis.best_penalty == best_row['penalty']

    def test_top_15_importance(self, analysis):
        assert len(analysis.importance) == config.TOP_N_FEATURES
        assert analysis.importance['importance'].is_monotonic_decreasing

    def test_test_rmse_scalar(self, analysis):
        assert isinstance(analysis.test_rmse, float)
        assert analysis.test_rmse >= 0

    def test_reproducible(self, analysis):
        """Re-running with the same seed reproduces the selection and the error."""
        df = generate_loan_data(n_samples=1000, random_state=123, joint_share=0.0)
        again = run_lasso_analysis(df=df, train_prop=0.8, n_folds=5, grid=GRID, random_state=123, n_jobs=1)

        assert again.best_penalty == analysis.best_penalty
        assert again.test_rmse == pytest.approx(analysis.test_rmse)

    def test_saves_model_when_requested(self, tmp_path, monkeypatch):
        model_path = tmp_path / "models" / "lasso_final.joblib"
        monkeypatch.setattr(config, "FINAL_MODEL_PATH", model_path)
        df = generate_loan_data(n_samples=300, random_state=1)

        run_lasso_analysis(df=df, n_folds=3, grid=[1e-3, 1e-1], save_model_flag=True)

        assert model_path.exists()

    def test_empty_filter_is_fatal(self):
        df = generate_loan_data(n_samples=200, random_state=1, joint_share=1.0)

        with pytest.raises(ValueError, match="No rows match"):
            run_lasso_analysis(df=df)


class TestCli:
    """Tests for the run_pipeline command line."""

    def test_synthetic_run(self, monkeypatch, caplog):
        monkeypatch.setattr(sys, "argv", ["run_pipeline.py", "--synthetic", "300", "--folds", "3"])

        with caplog.at_level("INFO"):
            run_pipeline.main()

        assert "Test RMSE" in caplog.text

    def test_missing_file_exits_with_error(self, monkeypatch, tmp_path):
        monkeypatch.setattr(sys, "argv", ["run_pipeline.py", "--data", str(tmp_path / "missing.csv")])

        with pytest.raises(SystemExit) as exc_info:
            run_pipeline.main()

        assert exc_info.value.code == 1

    def test_zero_synthetic_rows_rejected(self, monkeypatch):
        """--synthetic 0 is an error, not a silent switch to the configured CSV."""
        monkeypatch.setattr(sys, "argv", ["run_pipeline.py", "--synthetic", "0"])

        with patch("run_pipeline.run_lasso_analysis") as analysis_mock:
            with pytest.raises(SystemExit) as exc_info:
                run_pipeline.main()

        assert exc_info.value.code == 1
        analysis_mock.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
