"""
prediction: junction exit prediction
=====================================

Modules
-------
evaluator
    :class:`JunctionMLPEvaluator`, the Encode → Infer → Redistribute pipeline.
feature_encoder
    :class:`FeatureEncoder` and the 79-value :class:`FeatureVector`.
trajectory_cost
    :class:`TrajectoryCostModel` curvature cost toward an exit.
inference
    :func:`infer` forward pass of a feed-forward :class:`~model.Model`.
redistributor
    :class:`ProbabilityRedistributor` bin → lane-sequence probabilities.
model_repository
    :class:`ModelRepository` JSON / npz / joblib model files.
feature_output
    :class:`FeatureOutput` offline dataset collection.
payload, api
    JSON codec and the optional FastAPI server.
entities
    Obstacle, junction, lane and ego-pose data classes.
"""
