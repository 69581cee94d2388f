"""Shared fixtures for imagemill tests."""

import shutil
import tempfile
import threading
from pathlib import Path

import pytest
import yaml

from imagemill.backends.memory import InMemoryLedger, InMemoryStore
from imagemill.config import Config, Settings
from imagemill.controller import TransformController
from imagemill.models import ImageState


# === Path/Directory Fixtures ===

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


# === Manual clock for debouncing ===

class ManualTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.started and not self.cancelled:
            self.function()


class ManualClock:
    """Timer factory recording every timer it builds."""

    def __init__(self):
        self.timers: list[ManualTimer] = []

    def __call__(self, interval, function):
        timer = ManualTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]

    def fire_all(self) -> None:
        for timer in self.active:
            timer.fire()


@pytest.fixture
def clock():
    """Manual timer factory for deterministic debouncing."""
    return ManualClock()


# === Blocking collaborators for in-flight tests ===

class BlockingLedger(InMemoryLedger):
    """Ledger whose deduct() waits until released."""

    def __init__(self, balances=None):
        super().__init__(balances)
        self.entered = threading.Event()
        self.release = threading.Event()

    def deduct(self, account_id, amount):
        self.entered.set()
        if not self.release.wait(5):
            raise TimeoutError("ledger was never released")
        return super().deduct(account_id, amount)


class BlockingStore(InMemoryStore):
    """Store whose save() waits until released."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def save(self, descriptor):
        self.entered.set()
        if not self.release.wait(5):
            raise TimeoutError("store was never released")
        return super().save(descriptor)


@pytest.fixture
def blocking_ledger():
    ledger = BlockingLedger({"user-1": 10})
    yield ledger
    ledger.release.set()


@pytest.fixture
def blocking_store():
    store = BlockingStore()
    yield store
    store.release.set()


# === Backend Fixtures ===

@pytest.fixture
def ledger():
    """Ledger with 10 credits for user-1."""
    return InMemoryLedger({"user-1": 10})


@pytest.fixture
def store():
    return InMemoryStore()


# === Model Fixtures ===

@pytest.fixture
def uploaded_image():
    """An 800x600 image as returned by the upload widget."""
    return ImageState(
        public_id="artifyai/sample",
        width=800,
        height=600,
        secure_url="https://res.cloudinary.com/demo/image/upload/artifyai/sample.jpg",
    )


# === Config Fixtures ===

@pytest.fixture
def engine_config():
    """Config with a one-credit fee and a short debounce."""
    return Config(settings=Settings(credit_fee=1, debounce_delay_ms=50, cloud_name="demo"))


@pytest.fixture
def make_controller(ledger, store, engine_config, clock):
    """Build controllers wired to the shared fixtures; closes them afterwards."""
    created = []

    def _make(transformation_type="recolor", **kwargs):
        kwargs.setdefault("ledger", ledger)
        kwargs.setdefault("store", store)
        kwargs.setdefault("config", engine_config)
        kwargs.setdefault("timer_factory", clock)
        controller = TransformController(transformation_type, "user-1", **kwargs)
        created.append(controller)
        return controller

    yield _make
    for controller in created:
        controller.close()


@pytest.fixture
def full_config_dict():
    """Configuration dictionary exercising every section."""
    return {
        "version": 1,
        "settings": {
            "credit_fee": 2,
            "debounce_delay_ms": 250,
            "default_dimension": 800,
            "cloud_name": "artify",
        },
        "aspect_ratios": {
            "16:9": {
                "label": "Widescreen (16:9)",
                "width": 1920,
                "height": 1080,
            },
        },
        "transformation_types": {
            "sharpen": {
                "title": "Sharpen",
                "subtitle": "Crisp up soft edges",
                "config": {"sharpen": {"strength": 50}},
                "auto_stage": True,
            },
        },
    }


@pytest.fixture
def full_config_file(temp_dir, full_config_dict):
    """Create a temporary full config file."""
    config_path = temp_dir / "imagemill.yaml"
    with open(config_path, "w") as f:
        yaml.dump(full_config_dict, f)
    return config_path
