"""Tests for the springy and tactile perceptive models on the simulated hand."""

import numpy as np
import pytest

from percex.config import ProbeConfig, model_options
from percex.control.bounds import compute_bounds
from percex.control.probe import ContactProbeLoop
from percex.errors import ConfigurationError, RuntimeHardwareError
from percex.hardware.sim import TAXEL_PATTERN, TAXELS_PER_PAD, SimJointDriver
from percex.models import MODELS, SpringyFingersModel, TactileFingersModel, make_model


@pytest.fixture
def sim(clock):
    driver = SimJointDriver(noise=0.0, clock=clock)
    driver.open({})
    return driver


def quiet_options(**overrides):
    options = model_options(ProbeConfig(verbose=False))
    options.update(overrides)
    return options


def settle(driver, clock, joint, target, seconds=20.0):
    driver.position_move(joint, target)
    clock.sleep(seconds)
    driver.get_encoder(joint)


class TestMakeModel:
    def test_known_kinds(self, sim):
        assert set(MODELS) == {"springy", "tactile"}
        assert isinstance(make_model("springy", sim), SpringyFingersModel)
        assert isinstance(make_model("tactile", sim), TactileFingersModel)

    def test_unknown_kind(self, sim):
        with pytest.raises(ConfigurationError, match="unknown model type"):
            make_model("visual", sim)

    def test_models_start_empty(self, sim):
        model = make_model("springy", sim)
        assert model.nodes == {}
        assert model.get_node("index") is None


class TestConfigureFrom:
    def test_one_node_per_finger(self, sim):
        model = make_model("springy", sim)

        assert model.configure_from(quiet_options())
        assert set(model.nodes) == {"thumb", "index", "middle", "ring", "little"}
        assert model.get_node("index").get_name() == "index"
        assert model.robot == "icub"
        assert model.type == "right"
        assert model.verbose is False

    def test_only_listed_fingers(self, sim):
        options = {"robot": "icub", "type": "left", "index": {"name": "index"}}
        model = make_model("tactile", sim)

        assert model.configure_from(options)
        assert list(model.nodes) == ["index"]
        assert model.get_node("ring") is None

    def test_missing_robot(self, sim, capsys):
        options = quiet_options()
        del options["robot"]
        model = make_model("springy", sim)

        assert not model.configure_from(options)
        assert model.nodes == {}
        assert "invalid springy model options" in capsys.readouterr().out

    @pytest.mark.parametrize("options", [
        {"robot": "icub", "type": "up", "index": {}},
        {"robot": "icub", "verbose": "loud", "index": {}},
        {"robot": "icub", "index": "index"},
        {"robot": "icub", "index": {"calib_points": 1}},
        {"robot": "icub", "index": {"coefficients": [1.0, 2.0]}},
        {"robot": "icub"},
    ])
    def test_rejected_options(self, sim, options):
        assert not make_model("springy", sim).configure_from(options)

    def test_serialize_round_trip_keeps_calibration(self, sim):
        model = make_model("springy", sim)
        model.configure_from(quiet_options())
        model.get_node("index").coefficients = np.array([[0.5, 1.0], [0.45, -1.0]])

        restored = make_model("springy", sim)
        assert restored.configure_from(model.serialize_to())

        assert restored.serialize_to() == model.serialize_to()
        np.testing.assert_allclose(restored.get_node("index").coefficients, [[0.5, 1.0], [0.45, -1.0]])
        assert restored.get_node("thumb").coefficients is None

    @pytest.mark.parametrize("kind", ["springy", "tactile"])
    def test_renamed_node_reads_its_finger(self, sim, kind):
        model = make_model(kind, sim)
        assert model.configure_from({"robot": "icub", "index": {"name": "idx"}})

        node = model.get_node("index")
        assert node is not None
        assert node.get_name() == "idx"
        assert model.get_node("idx") is None
        assert len(node.get_sensors_data()) > 0
        assert model.serialize_to()["index"]["name"] == "idx"

    def test_renamed_node_reports_in_loop(self, sim, clock):
        model = make_model("tactile", sim, sleep=clock.sleep)
        model.configure_from({"robot": "icub", "index": {"name": "idx"}})
        reports = []
        loop = ContactProbeLoop(sim, model, "index", compute_bounds(*sim.get_limits(12)), sink=reports.append)

        loop.tick()
        loop.tick()

        assert [r.label for r in reports] == ["idx"]

    def test_serialize_layout(self, sim):
        model = make_model("tactile", sim)
        model.configure_from(quiet_options(name="percex/tactile"))
        options = model.serialize_to()

        assert options["name"] == "percex/tactile"
        assert options["verbose"] == 0
        assert options["index"] == {"name": "index", "calib_samples": 10}


class TestSpringyModel:
    @pytest.fixture
    def model(self, sim, clock):
        model = make_model("springy", sim, sleep=clock.sleep)
        assert model.configure_from(quiet_options())
        return model

    def test_uncalibrated_output_is_zero(self, model):
        assert model.get_node("index").get_output() == 0.0

    def test_calibration_fits_coupling(self, model, sim):
        model.calibrate({"finger": "index"})
        node = model.get_node("index")

        np.testing.assert_allclose(node.coefficients, [[0.5, 0.0], [0.45, 0.0]], atol=1e-9)
        # Sweep stays inside the trimmed range
        assert 18.0 - 2.0 <= sim.get_encoder(12) <= 162.0 + 2.0
        assert sim.speeds[12] == node.calib_speed

    def test_three_distal_joints_for_ring(self, model):
        model.calibrate({"finger": "ring"})
        np.testing.assert_allclose(
            model.get_node("ring").coefficients, [[0.33, 0.0], [0.3, 0.0], [0.3, 0.0]], atol=1e-9
        )

    def test_free_motion_output_near_zero(self, model, sim, clock):
        model.calibrate({"finger": "index"})
        settle(sim, clock, 12, 70.0)

        assert model.get_node("index").get_output() == pytest.approx(0.0, abs=1e-9)

    def test_contact_raises_output(self, model, sim, clock):
        model.calibrate({"finger": "index"})
        sim.contact_at = 60.0
        settle(sim, clock, 12, 100.0)

        node = model.get_node("index")
        data = node.get_sensors_data()
        assert data[0] == pytest.approx(100.0)
        np.testing.assert_allclose(data[1:], [30.0, 27.0])
        assert node.get_output() == pytest.approx(np.hypot(20.0, 18.0))

    def test_output_from_given_sample(self, model, sim):
        model.calibrate({"finger": "index"})
        sim.close()

        # No hardware read when the tick's sample is passed in
        output = model.get_node("index").get_output(np.array([100.0, 30.0, 27.0]))
        assert output == pytest.approx(np.hypot(20.0, 18.0))

    def test_output_grows_with_penetration(self, model, sim, clock):
        model.calibrate({"finger": "index"})
        sim.contact_at = 60.0
        node = model.get_node("index")

        outputs = []
        for target in (50.0, 80.0, 120.0):
            settle(sim, clock, 12, target)
            outputs.append(node.get_output())

        assert outputs[0] == pytest.approx(0.0, abs=1e-9)
        assert outputs[0] < outputs[1] < outputs[2]

    def test_calibration_timeout(self, sim, clock):
        model = make_model("springy", sim, sleep=clock.sleep)
        options = quiet_options(index={"name": "index", "calib_speed": 0.01, "calib_timeout": 0.5})
        model.configure_from(options)

        with pytest.raises(RuntimeHardwareError, match="did not reach"):
            model.calibrate({"finger": "index"})

    def test_calibration_needs_motion(self, model):
        node = model.get_node("index")
        with pytest.raises(RuntimeHardwareError, match="did not move"):
            node.fit(np.array([5.0, 5.0]), np.array([[1.0, 1.0], [1.0, 1.0]]))

    def test_calibrate_unknown_finger(self, model):
        with pytest.raises(ConfigurationError):
            model.calibrate({"finger": "pinky"})

    def test_calibrate_finger_without_node(self, sim, clock):
        model = make_model("springy", sim, sleep=clock.sleep)
        model.configure_from({"robot": "icub", "index": {"name": "index"}})

        with pytest.raises(ConfigurationError, match="no node for thumb"):
            model.calibrate({"finger": "thumb"})

    def test_verbose_prints_fit(self, sim, clock, capsys):
        model = make_model("springy", sim, sleep=clock.sleep)
        model.configure_from(quiet_options(verbose=1))
        model.calibrate({"finger": "middle"})

        assert "middle calibrated:" in capsys.readouterr().out


class TestTactileModel:
    @pytest.fixture
    def model(self, sim, clock):
        model = make_model("tactile", sim, sleep=clock.sleep)
        assert model.configure_from(quiet_options())
        return model

    def test_uncalibrated_reports_raw_load(self, model):
        assert model.get_node("index").get_output() == pytest.approx(10.0 * TAXELS_PER_PAD)

    def test_baseline_from_rest(self, model, clock):
        model.calibrate({"finger": "index"})
        node = model.get_node("index")

        np.testing.assert_allclose(node.baseline, np.full(TAXELS_PER_PAD, 10.0))
        assert len(clock.sleeps) == node.calib_samples
        assert node.get_output() == pytest.approx(0.0)

    def test_contact_output(self, model, sim, clock):
        model.calibrate({"finger": "index"})
        sim.contact_at = 60.0
        settle(sim, clock, 12, 100.0)

        expected = 2.0 * 40.0 * TAXEL_PATTERN.sum()
        assert model.get_node("index").get_output() == pytest.approx(expected)

    def test_pressure_ignores_unloading(self, model):
        node = model.get_node("index")
        node.baseline = np.full(TAXELS_PER_PAD, 10.0)
        taxels = np.full(TAXELS_PER_PAD, 9.0)
        taxels[0] = 13.0

        assert node.pressure(taxels) == pytest.approx(3.0)

    def test_baseline_survives_serialization(self, model, sim):
        model.calibrate({"finger": "thumb"})
        restored = make_model("tactile", sim)
        restored.configure_from(model.serialize_to())

        np.testing.assert_allclose(restored.get_node("thumb").baseline, model.get_node("thumb").baseline)
