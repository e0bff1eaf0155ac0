"""
Training pipeline for the loan interest-rate lasso.

Contains modules for splitting, model definition, penalty tuning, evaluation,
and the end-to-end analysis run.
"""
