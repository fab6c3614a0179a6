from pathlib import Path

import pytest
from id3tree import DecisionTree

RESOURCES = Path(__file__).parent.parent / "resources"

WEATHER_QUERIES = [
    ("no", "sunny hot high weak"),
    ("no", "sunny hot high strong"),
    ("yes", "overcast hot high weak"),
    ("yes", "rain mild high weak"),
    ("yes", "rain cool normal weak"),
    ("yes", "overcast cool normal strong"),
    ("no", "sunny mild high weak"),
    ("yes", "sunny cool normal weak"),
    ("yes", "rain mild normal weak"),
    ("yes", "sunny mild normal strong"),
    ("yes", "overcast mild high strong"),
    ("yes", "overcast hot normal weak"),
    ("no", "rain mild high strong"),
]


@pytest.fixture
def weather_examples_path() -> Path:
    return RESOURCES / "weather.examples"


@pytest.fixture
def weather_prebuilt_path() -> Path:
    return RESOURCES / "weather.dts"


@pytest.fixture
def weather_prebuilt_text(weather_prebuilt_path) -> str:
    return weather_prebuilt_path.read_text(encoding="utf-8")


@pytest.fixture
def weather_tree(weather_examples_path) -> DecisionTree:
    tree = DecisionTree()
    assert tree.load_training_data(weather_examples_path)
    return tree


@pytest.fixture
def trained_tree(weather_tree) -> DecisionTree:
    return weather_tree.train()
