"""Tests for Pipeline orchestration, ownership and persistence."""

import io

import numpy as np
import pytest

from gesturelib import (
    Pipeline,
    TimeseriesBuffer,
    MovingAverageFilter,
    DeadZone,
    MinDist,
    LinearRegression,
    ClassLabelChangeFilter,
    DimensionMismatchError,
    FormatError,
    InvalidConfigurationError,
    NotInitializedError,
    NotTrainedError,
    TypeMismatchError,
)


# =============================================================================
# Helpers
# =============================================================================

WINDOW_SAMPLES = np.array([1.0, 1.0, 1.0, 5.0, 5.0, 5.0])
WINDOW_LABELS = np.array([1, 1, 1, 2, 2, 2])


def window_pipeline(registry=None, train=True):
    pipeline = Pipeline(registry=registry)
    assert pipeline.add_stage(TimeseriesBuffer(buffer_size=2, num_dimensions=1))
    assert pipeline.set_classifier(MinDist())
    if train:
        assert pipeline.train(WINDOW_SAMPLES, WINDOW_LABELS)
    return pipeline


def window_history(pipeline):
    return pipeline.get_feature_extraction_module(0).get_data_buffer()


# =============================================================================
# Building
# =============================================================================

class TestPipelineBuild:
    def test_stages_go_to_family_slots(self):
        pipeline = Pipeline()
        assert pipeline.add_stage(DeadZone(-0.1, 0.1, 1))
        assert pipeline.add_stage(TimeseriesBuffer(3, 1))
        assert pipeline.add_stage(MinDist())
        assert pipeline.add_stage(ClassLabelChangeFilter())
        types = [m.get_module_type() for m in pipeline.iter_modules()]
        assert types == ["DeadZone", "TimeseriesBuffer", "MinDist", "ClassLabelChangeFilter"]

    def test_insert_at_index(self):
        pipeline = Pipeline()
        pipeline.add_pre_processing_module(DeadZone())
        pipeline.add_pre_processing_module(MovingAverageFilter(), index=0)
        assert pipeline.get_pre_processing_module(0).get_module_type() == "MovingAverageFilter"

    def test_pipeline_owns_a_copy(self):
        buf = TimeseriesBuffer(3, 1)
        pipeline = Pipeline()
        pipeline.add_stage(buf)
        pipeline.get_feature_extraction_module(0).update(7.0)
        assert np.all(buf.get_data_buffer() == 0.0)

    def test_wrong_family_rejected(self):
        pipeline = Pipeline()
        assert not pipeline.add_pre_processing_module(TimeseriesBuffer())
        assert isinstance(pipeline.last_error, TypeMismatchError)
        assert not pipeline.set_classifier(LinearRegression())
        assert isinstance(pipeline.last_error, TypeMismatchError)
        assert not pipeline.set_regressor(MinDist())

    def test_clear_all(self):
        pipeline = window_pipeline()
        pipeline.clear_all()
        assert list(pipeline.iter_modules()) == []
        assert not pipeline.is_trained


# =============================================================================
# Training and prediction
# =============================================================================

class TestPipelinePredict:
    def test_untrained_predict_does_not_touch_history(self):
        pipeline = window_pipeline(train=False)
        assert not pipeline.predict(1.0)
        assert isinstance(pipeline.last_error, NotTrainedError)
        assert np.all(window_history(pipeline) == 0.0)

    def test_empty_pipeline(self):
        pipeline = Pipeline()
        assert not pipeline.predict([1.0])
        assert isinstance(pipeline.last_error, NotInitializedError)

    def test_train_without_predictor(self):
        pipeline = Pipeline()
        pipeline.add_stage(TimeseriesBuffer(2, 1))
        assert not pipeline.train(WINDOW_SAMPLES, WINDOW_LABELS)
        assert isinstance(pipeline.last_error, NotInitializedError)

    def test_training_leaves_history_clean(self):
        pipeline = window_pipeline()
        assert pipeline.is_trained
        assert np.all(window_history(pipeline) == 0.0)
        assert pipeline.get_predictor().get_num_input_dimensions() == 2

    def test_windowed_classification(self):
        pipeline = window_pipeline()
        assert pipeline.predict(5.0)
        assert pipeline.predict(5.0)
        assert pipeline.get_predicted_class_label() == 2

        assert pipeline.reset()
        assert pipeline.predict(1.0)
        assert pipeline.predict(1.0)
        assert pipeline.get_predicted_class_label() == 1
        np.testing.assert_array_equal(pipeline.get_output(), [1.0])

    def test_post_processing_applies_to_label(self):
        pipeline = Pipeline()
        pipeline.set_classifier(MinDist())
        pipeline.add_post_processing_module(ClassLabelChangeFilter())
        X = np.array([[0.0, 0.0], [0.2, 0.0], [10.0, 10.0], [10.2, 10.0]])
        assert pipeline.train(X, [1, 1, 2, 2])

        assert pipeline.predict([0.1, 0.0])
        assert pipeline.get_predicted_class_label() == 1
        assert pipeline.predict([0.1, 0.0])
        assert pipeline.get_predicted_class_label() == 0
        assert pipeline.get_unprocessed_predicted_class_label() == 1

    def test_regression(self):
        pipeline = Pipeline()
        assert pipeline.set_regressor(LinearRegression())
        assert pipeline.train([0.0, 1.0, 2.0, 3.0], [1.0, 3.0, 5.0, 7.0])
        assert pipeline.predict(10.0)
        np.testing.assert_allclose(pipeline.get_regression_data(), [21.0])

    def test_input_dimension_mismatch(self):
        pipeline = window_pipeline()
        assert not pipeline.predict([1.0, 2.0])
        assert isinstance(pipeline.last_error, DimensionMismatchError)
        assert np.all(window_history(pipeline) == 0.0)

    def test_chain_dimension_mismatch(self):
        clf = MinDist()
        clf.train(np.eye(4) + 1.0, [1, 1, 2, 2])
        pipeline = Pipeline()
        pipeline.add_stage(TimeseriesBuffer(3, 2))
        pipeline.set_classifier(clf)
        assert pipeline.is_trained
        assert not pipeline.predict([1.0, 1.0])
        assert isinstance(pipeline.last_error, DimensionMismatchError)
        assert np.all(window_history(pipeline) == 0.0)

    def test_reset_keeps_training(self):
        pipeline = window_pipeline()
        pipeline.predict(5.0)
        assert pipeline.reset()
        assert pipeline.is_trained
        assert np.all(window_history(pipeline) == 0.0)
        assert pipeline.get_predicted_class_label() == 0


# =============================================================================
# Cloning and persistence
# =============================================================================

class TestPipelineCopyAndSettings:
    def test_clone_is_independent(self):
        pipeline = window_pipeline()
        pipeline.predict(5.0)
        other = pipeline.clone()
        assert other is not None
        assert other.is_trained
        np.testing.assert_array_equal(window_history(other), window_history(pipeline))

        before = window_history(pipeline)
        other.predict(1.0)
        np.testing.assert_array_equal(window_history(pipeline), before)

    def test_round_trip(self, registry):
        pipeline = window_pipeline(registry)
        sink = io.StringIO()
        assert pipeline.save_settings(sink)

        loaded = Pipeline(registry=registry)
        assert loaded.load_settings(io.StringIO(sink.getvalue()))
        assert loaded.is_trained
        assert [m.get_module_type() for m in loaded.iter_modules()] == ["TimeseriesBuffer", "MinDist"]
        for value in (5.0, 5.0, 1.0, 1.0):
            pipeline.predict(value)
            loaded.predict(value)
            assert loaded.get_predicted_class_label() == pipeline.get_predicted_class_label()

    def test_file_round_trip(self, registry, tmp_path):
        pipeline = Pipeline(registry=registry)
        pipeline.add_stage(MovingAverageFilter(3, 1))
        pipeline.set_regressor(LinearRegression())
        pipeline.train([0.0, 1.0, 2.0, 3.0, 4.0], [0.0, 1.0, 2.0, 3.0, 4.0])
        path = tmp_path / "pipeline.txt"
        assert pipeline.save_settings_to_file(path)

        loaded = Pipeline(registry=registry)
        assert loaded.load_settings_from_file(path)
        pipeline.predict(2.0)
        loaded.predict(2.0)
        np.testing.assert_allclose(loaded.get_regression_data(), pipeline.get_regression_data())

    def test_load_requires_registry(self):
        text = io.StringIO()
        window_pipeline().save_settings(text)
        loaded = Pipeline()
        assert not loaded.load_settings(io.StringIO(text.getvalue()))
        assert isinstance(loaded.last_error, InvalidConfigurationError)

    def test_unknown_module_type(self, registry):
        text = (
            "GESTURELIB_PIPELINE_SETTINGS_V1\n"
            "Trained: 0\n"
            "NumPreProcessingModules: 1\n"
            "NumFeatureExtractionModules: 0\n"
            "HasPredictor: 0\n"
            "NumPostProcessingModules: 0\n"
            "PreProcessingModule: NoSuchFilter\n"
        )
        pipeline = Pipeline(registry=registry)
        assert not pipeline.load_settings(io.StringIO(text))
        assert isinstance(pipeline.last_error, FormatError)

    def test_module_in_wrong_slot(self, registry):
        text = (
            "GESTURELIB_PIPELINE_SETTINGS_V1\n"
            "Trained: 0\n"
            "NumPreProcessingModules: 1\n"
            "NumFeatureExtractionModules: 0\n"
            "HasPredictor: 0\n"
            "NumPostProcessingModules: 0\n"
            "PreProcessingModule: TimeseriesBuffer\n"
        )
        pipeline = Pipeline(registry=registry)
        assert not pipeline.load_settings(io.StringIO(text))
        assert isinstance(pipeline.last_error, TypeMismatchError)

    def test_failed_load_leaves_pipeline_unchanged(self, registry):
        pipeline = window_pipeline(registry)
        truncated = io.StringIO()
        pipeline.save_settings(truncated)
        text = "\n".join(truncated.getvalue().splitlines()[:-2]) + "\n"

        target = window_pipeline(registry)
        target.predict(5.0)
        before = window_history(target)
        assert not target.load_settings(io.StringIO(text))
        assert isinstance(target.last_error, FormatError)
        assert target.is_trained
        np.testing.assert_array_equal(window_history(target), before)

    @pytest.mark.parametrize("field", [
        "NumPreProcessingModules",
        "NumFeatureExtractionModules",
        "NumPostProcessingModules",
    ])
    def test_negative_module_count_rejected(self, registry, field):
        counts = {
            "NumPreProcessingModules": 0,
            "NumFeatureExtractionModules": 0,
            "NumPostProcessingModules": 0,
        }
        counts[field] = -3
        text = (
            "GESTURELIB_PIPELINE_SETTINGS_V1\n"
            "Trained: 0\n"
            f"NumPreProcessingModules: {counts['NumPreProcessingModules']}\n"
            f"NumFeatureExtractionModules: {counts['NumFeatureExtractionModules']}\n"
            "HasPredictor: 0\n"
            f"NumPostProcessingModules: {counts['NumPostProcessingModules']}\n"
        )
        pipeline = window_pipeline(registry)
        assert not pipeline.load_settings(io.StringIO(text))
        assert isinstance(pipeline.last_error, InvalidConfigurationError)
        assert pipeline.is_trained
        assert len(list(pipeline.iter_modules())) == 2

    @pytest.mark.parametrize("train", [True, False])
    def test_trained_flag_must_match_predictor(self, registry, train):
        sink = io.StringIO()
        window_pipeline(registry, train=train).save_settings(sink)
        saved = sink.getvalue()
        flag = "Trained: 1\n" if train else "Trained: 0\n"
        flipped = "Trained: 0\n" if train else "Trained: 1\n"
        assert saved.splitlines()[1] + "\n" == flag
        text = saved.replace(flag, flipped, 1)

        pipeline = Pipeline(registry=registry)
        assert not pipeline.load_settings(io.StringIO(text))
        assert isinstance(pipeline.last_error, FormatError)
        assert list(pipeline.iter_modules()) == []
