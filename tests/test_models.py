from models import Device, DevicePublicView, ErrorCode, StoreResult


def make_device(**overrides):
    fields = dict(id=7, name="Wiimote", app_id="RMCP01",
                  saved_cpn="ABCDEFGH", security_key="SEKRIT", status="Active")
    fields.update(overrides)
    return Device(**fields)


def test_repr_hides_secrets():
    text = repr(make_device())

    assert "Wiimote" in text
    assert "ABCDEFGH" not in text
    assert "SEKRIT" not in text


def test_public_view():
    assert make_device().public_view() == DevicePublicView(7, "Wiimote", "RMCP01", "Active")


def test_matches_secret():
    device = make_device()

    assert device.matches_secret("ABCDEFGH")
    assert device.matches_secret("SEKRIT")
    assert not device.matches_secret("abcdefgh")
    assert not device.matches_secret("")


def test_missing_secret_never_matches():
    device = make_device(security_key=None)

    assert device.matches_secret("ABCDEFGH")
    assert not device.matches_secret("")
    assert not device.matches_secret(None)
    assert device.to_dict()["securityKey"] is None


def test_to_dict_uses_file_key_names():
    assert make_device().to_dict() == {
        "id": 7,
        "name": "Wiimote",
        "appId": "RMCP01",
        "savedCPN": "ABCDEFGH",
        "securityKey": "SEKRIT",
        "status": "Active",
    }


def test_default_status_is_active():
    device = Device(id=1, name="n", app_id="a", saved_cpn="12345678", security_key="k")

    assert device.status == "Active"


def test_store_result_flags():
    assert StoreResult.success("v").ok
    assert not StoreResult.success("v").unsaved

    denied = StoreResult.failure(ErrorCode.ACCESS_DENIED, "no", field="secret")
    assert not denied.ok
    assert not denied.unsaved
    assert denied.field == "secret"

    unsaved = StoreResult.failure(ErrorCode.IO_FAILURE, "disk full", value=[])
    assert not unsaved.ok
    assert unsaved.unsaved

    assert not StoreResult.failure(ErrorCode.IO_FAILURE, "read error").unsaved
