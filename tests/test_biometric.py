"""Tests for biometric capability checks and the PIN gate."""

import json

import pytest

from goodhackers.biometric import (
    AuthenticationType, BiometricResult, PinBiometricGate,
)

from conftest import FakeGate


class TestIsCapable:

    def test_fingerprint_enrolled(self):
        assert FakeGate().is_capable() is True

    def test_no_hardware(self):
        assert FakeGate(hardware=False).is_capable() is False

    def test_not_enrolled(self):
        assert FakeGate(enrolled=False).is_capable() is False

    def test_face_only_not_accepted_by_default(self):
        gate = FakeGate(types=(AuthenticationType.FACE,))
        assert gate.is_capable() is False
        assert gate.is_capable({"face"}) is True

    def test_accepts_enum_members(self):
        gate = FakeGate(types=(AuthenticationType.OTHER,))
        assert gate.is_capable({AuthenticationType.OTHER}) is True

    def test_probe_error_means_not_capable(self):
        def broken():
            raise OSError("sensor gone")

        gate = FakeGate()
        gate.has_hardware = broken
        assert gate.is_capable() is False


class TestPinBiometricGate:

    @pytest.fixture
    def auth_file(self, tmp_path):
        return str(tmp_path / "auth.json")

    def test_not_enrolled_until_pin_set(self, auth_file):
        gate = PinBiometricGate(auth_file, prompt=lambda text: "1234")
        assert gate.is_enrolled() is False
        assert gate.authenticate("Unlock") is BiometricResult.FAILURE

    def test_enroll_and_authenticate(self, auth_file):
        gate = PinBiometricGate(auth_file, prompt=lambda text: "1234")
        gate.enroll("1234")
        assert gate.is_enrolled() is True
        assert gate.authenticate("Unlock") is BiometricResult.SUCCESS

    def test_wrong_pin(self, auth_file):
        gate = PinBiometricGate(auth_file, prompt=lambda text: "9999")
        gate.enroll("1234")
        assert gate.authenticate("Unlock") is BiometricResult.FAILURE

    def test_dismissed_prompt_is_cancelled(self, auth_file):
        gate = PinBiometricGate(auth_file, prompt=lambda text: None)
        gate.enroll("1234")
        assert gate.authenticate("Unlock") is BiometricResult.CANCELLED

    def test_prompt_receives_text(self, auth_file):
        seen = []
        gate = PinBiometricGate(auth_file, prompt=lambda text: seen.append(text) or "1234")
        gate.enroll("1234")
        gate.authenticate("Unlock Good Hackers")
        assert seen == ["Unlock Good Hackers"]

    def test_enrollment_survives_reload(self, auth_file):
        PinBiometricGate(auth_file).enroll("1234")
        gate = PinBiometricGate(auth_file, prompt=lambda text: "1234")
        assert gate.is_enrolled() is True
        assert gate.authenticate("Unlock") is BiometricResult.SUCCESS

    def test_pin_not_stored_in_clear(self, auth_file):
        PinBiometricGate(auth_file).enroll("123456")
        with open(auth_file) as f:
            data = json.load(f)
        assert "123456" not in json.dumps(data)

    def test_unreadable_file_means_not_enrolled(self, auth_file):
        with open(auth_file, "w") as f:
            f.write("{not json")
        assert PinBiometricGate(auth_file).is_enrolled() is False

    def test_capable_only_with_other_type_accepted(self, auth_file):
        gate = PinBiometricGate(auth_file)
        gate.enroll("1234")
        assert gate.is_capable() is False
        assert gate.is_capable({"fingerprint", "other"}) is True
