import json

import pytest

from accounts import AccountStore
from storage import DeviceStore


@pytest.fixture
def accounts_path(tmp_path):
    return str(tmp_path / "accounts.json")


@pytest.fixture
def account_store(accounts_path):
    store = AccountStore(accounts_path)
    store.load()
    return store


@pytest.fixture
def devices_path(tmp_path):
    return str(tmp_path / "devices.json")


@pytest.fixture
def device_store(devices_path):
    return DeviceStore(devices_path)


@pytest.fixture
def read_json():
    def _read(path):
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    return _read


@pytest.fixture
def write_json():
    def _write(path, data):
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
    return _write
