import io
import pickle

import pytest
from conftest import WEATHER_QUERIES
from id3tree import DecisionTree, TreeFormatError
from id3tree.data import UNKNOWN_OUTCOME, DecisionResult
from id3tree.example import ClassificationData
from id3tree.utils import normalize_tree_text


@pytest.fixture
def prebuilt_tree(weather_prebuilt_path) -> DecisionTree:
    tree = DecisionTree()
    assert tree.load(weather_prebuilt_path)
    return tree


@pytest.fixture(params=["trained", "prebuilt"])
def any_weather_tree(request, trained_tree, prebuilt_tree) -> DecisionTree:
    return trained_tree if request.param == "trained" else prebuilt_tree


class TestClassify:
    @pytest.mark.parametrize("expected,values", WEATHER_QUERIES)
    def test_weather_queries(self, any_weather_tree, expected, values):
        query = any_weather_tree.make_query(values)
        assert any_weather_tree.classify(query) == expected

    def test_training_examples_classify_as_labelled(self, trained_tree):
        for example in trained_tree.examples:
            assert trained_tree.classify(example) == trained_tree.get_class(
                example.class_id
            )

    def test_only_split_attributes_are_needed(self, any_weather_tree):
        query = any_weather_tree.make_query({"humidity": "normal"})
        assert any_weather_tree.classify(query) == "yes"
        query = any_weather_tree.make_query(
            {"Humidity": "HIGH", "outlook": "rain", "wind": "weak"}
        )
        assert any_weather_tree.classify(query) == "yes"

    def test_missing_split_value_is_a_lookup_error(self, trained_tree):
        query = trained_tree.make_query({"humidity": "high"})
        with pytest.raises(KeyError):
            trained_tree.classify(query)

    def test_untrained_tree_returns_unknown(self, weather_tree):
        assert not weather_tree.is_trained
        query = weather_tree.make_query("sunny hot high weak")
        assert weather_tree.classify(query) == UNKNOWN_OUTCOME

    def test_custom_unknown_outcome(self):
        tree = DecisionTree(unknown_outcome="?")
        assert tree.classify(ClassificationData()) == "?"

    def test_decide(self, trained_tree):
        result = trained_tree.decide(trained_tree.make_query("sunny hot high weak"))
        assert isinstance(result, DecisionResult)
        assert result.outcome == "no"
        assert result.is_valid

    def test_decide_untrained_is_not_valid(self):
        result = DecisionTree().decide(ClassificationData())
        assert result.outcome == UNKNOWN_OUTCOME
        assert not result.is_valid

    def test_decide_custom_unknown_outcome_is_not_valid(self):
        result = DecisionTree(unknown_outcome="N/A").decide(ClassificationData())
        assert result.outcome == "N/A"
        assert not result.is_valid

    def test_decide_label_matching_default_unknown_is_valid(self):
        tree = DecisionTree(unknown_outcome="N/A")
        assert tree.load(io.StringIO("1\nUNKNOWN\n0\nOUTCOME UNKNOWN\n"))
        result = tree.decide(ClassificationData())
        assert result.outcome == UNKNOWN_OUTCOME
        assert result.is_valid


class TestMakeQuery:
    def test_sequence(self, weather_tree):
        query = weather_tree.make_query(["sunny", "hot", "high", "weak"])
        assert len(query) == 4

    def test_wrong_number_of_values(self, weather_tree):
        with pytest.raises(ValueError):
            weather_tree.make_query("sunny hot high")

    def test_unknown_value(self, weather_tree):
        with pytest.raises(KeyError):
            weather_tree.make_query("sunny hot damp weak")

    def test_unknown_attribute(self, weather_tree):
        with pytest.raises(KeyError):
            weather_tree.make_query({"pressure": "low"})


class TestTrain:
    def test_root_split(self, trained_tree):
        root = trained_tree.root
        assert trained_tree.get_attribute(root.attribute_id).name == "humidity"
        assert trained_tree.is_trained

    def test_shape(self, any_weather_tree):
        assert any_weather_tree.depth == 3
        assert any_weather_tree.n_leaves == 5

    def test_train_is_repeatable(self, trained_tree):
        first = trained_tree.dumps()
        assert trained_tree.train().dumps() == first

    def test_max_depth(self, weather_examples_path):
        tree = DecisionTree(max_depth=1)
        assert tree.load_training_data(weather_examples_path)
        tree.train()
        assert tree.depth == 1
        assert tree.n_leaves == 2
        assert tree.classify(tree.make_query("overcast hot high weak")) == "no"

    def test_max_depth_zero(self, weather_examples_path):
        tree = DecisionTree(max_depth=0)
        assert tree.load_training_data(weather_examples_path)
        tree.train()
        assert tree.root.is_leaf
        assert tree.classify(tree.make_query("sunny hot high weak")) == "yes"

    def test_no_examples_warns(self):
        tree = DecisionTree()
        tree.set_classes(["yes"])
        tree.add_attribute("color", ["red"])
        with pytest.warns(UserWarning, match="No training examples"):
            tree.train()
        assert not tree.is_trained

    @pytest.mark.parametrize("max_depth", [-1, 1.5, "2"])
    def test_invalid_max_depth(self, max_depth):
        with pytest.raises(ValueError):
            DecisionTree(max_depth=max_depth)

    def test_invalid_unknown_outcome(self):
        with pytest.raises(ValueError):
            DecisionTree(unknown_outcome="")


class TestPersistence:
    def test_saved_text_matches_prebuilt(self, trained_tree, weather_prebuilt_text):
        assert normalize_tree_text(trained_tree.dumps()) == normalize_tree_text(
            weather_prebuilt_text
        )

    def test_round_trip(self, trained_tree):
        text = trained_tree.dumps()
        loaded = DecisionTree()
        assert loaded.load(io.StringIO(text))
        assert loaded.dumps() == text
        assert loaded.examples == []
        for expected, values in WEATHER_QUERIES:
            assert loaded.classify(loaded.make_query(values)) == expected

    def test_reload_is_idempotent(self, prebuilt_tree, weather_prebuilt_path):
        first = prebuilt_tree.dumps()
        assert prebuilt_tree.load(weather_prebuilt_path)
        assert prebuilt_tree.dumps() == first

    def test_load_replaces_training_state(self, trained_tree, weather_prebuilt_text):
        assert trained_tree.load(io.StringIO(weather_prebuilt_text))
        assert trained_tree.examples == []
        assert trained_tree.root.information_gain == {}

    def test_untrained_save_writes_nothing(self, weather_tree):
        buffer = io.StringIO()
        assert not weather_tree.save(buffer)
        assert buffer.getvalue() == ""

    def test_save_and_load_files(self, trained_tree, tmp_path):
        path = tmp_path / "weather.dts"
        trained_tree.save_tree(str(path))
        loaded = DecisionTree.load_tree(str(path), max_depth=2)
        assert loaded.max_depth == 2
        assert loaded.dumps() == trained_tree.dumps()

    def test_save_tree_untrained_raises(self, tmp_path):
        with pytest.raises(ValueError):
            DecisionTree().save_tree(str(tmp_path / "empty.dts"))

    def test_load_tree_missing_file_raises(self, tmp_path):
        with pytest.raises(TreeFormatError):
            DecisionTree.load_tree(str(tmp_path / "missing.dts"))

    def test_load_missing_file(self, tmp_path):
        assert not DecisionTree().load(tmp_path / "missing.dts")

    def test_leaf_only_tree(self):
        tree = DecisionTree()
        assert tree.load(io.StringIO("1\nyes\n0\nOUTCOME yes\n"))
        assert tree.is_trained
        assert tree.classify(ClassificationData()) == "yes"

    def test_blank_lines_and_padding_are_ignored(self, weather_prebuilt_text):
        padded = "\n\n".join(f"  {line}  " for line in weather_prebuilt_text.splitlines())
        tree = DecisionTree()
        assert tree.load(io.StringIO(padded))
        assert normalize_tree_text(tree.dumps()) == normalize_tree_text(
            weather_prebuilt_text
        )


def _drop_last_line(text):
    return "\n".join(text.strip().splitlines()[:-1])


@pytest.mark.parametrize(
    "corrupt",
    [
        pytest.param(lambda text: "", id="empty"),
        pytest.param(lambda text: "x" + text, id="bad-class-count"),
        pytest.param(lambda text: text.replace("\nno\n", "\nYES\n", 1), id="dup-class"),
        pytest.param(lambda text: text.replace("outlook 3", "outlook 4"), id="count-mismatch"),
        pytest.param(lambda text: text.replace("outlook 3", "outlook three"), id="bad-value-count"),
        pytest.param(lambda text: text.replace("SPLIT humidity", "BRANCH humidity"), id="bad-keyword"),
        pytest.param(lambda text: text.replace("SPLIT humidity", "SPLIT pressure"), id="unknown-attribute"),
        pytest.param(lambda text: text.replace("OUTCOME no", "OUTCOME maybe", 1), id="unknown-class"),
        pytest.param(lambda text: text.replace(" overcast\nOUTCOME", " cloudy\nOUTCOME"), id="unknown-value"),
        pytest.param(_drop_last_line, id="truncated"),
        pytest.param(lambda text: text + "OUTCOME yes\n", id="trailing-content"),
    ],
)
def test_malformed_load_leaves_tree_empty(trained_tree, weather_prebuilt_text, corrupt):
    assert not trained_tree.load(io.StringIO(corrupt(weather_prebuilt_text)))
    assert not trained_tree.is_trained
    assert trained_tree.attributes == {}
    assert trained_tree.examples == []
    assert trained_tree.n_classes == 0


class TestInspection:
    def test_get_node_list(self, trained_tree):
        nodes = trained_tree.get_node_list()
        assert len(nodes) == 8
        root = nodes[0]
        assert root.split_attribute == "humidity"
        assert not root.is_leaf
        assert root.parent_node == -1
        assert root.children == {"normal": 1, "high": 2}
        assert root.information_gain == pytest.approx(0.36, abs=0.01)
        assert nodes[1].is_leaf
        assert nodes[1].outcome == "yes"
        assert nodes[1].parent_node == 0
        assert [n.depth for n in nodes] == [0, 1, 1, 2, 2, 2, 3, 3]

    def test_loaded_tree_has_no_gain(self, prebuilt_tree):
        assert all(n.information_gain is None for n in prebuilt_tree.get_node_list())

    def test_tree_to_dataframe(self, trained_tree):
        df = trained_tree.tree_to_dataframe()
        assert len(df) == 8
        assert list(df.columns) == [
            "Node",
            "Depth",
            "Parent",
            "Feature",
            "Outcome",
            "Gain",
            "Children",
        ]

    def test_text_dump(self, trained_tree):
        dump = trained_tree.text_dump()
        assert dump[0] == "|--- humidity = normal"
        assert dump[1] == "|   |--- class: yes"
        assert dump[-1] == "|   |   |   |--- class: no"
        assert str(trained_tree) == "\n".join(dump)

    def test_text_dump_untrained(self):
        assert DecisionTree().text_dump() == ["|--- class: UNKNOWN"]


class TestParams:
    def test_get_params(self):
        tree = DecisionTree(max_depth=3)
        assert tree.get_params() == {"max_depth": 3, "unknown_outcome": UNKNOWN_OUTCOME}

    def test_set_params_keeps_tree(self, trained_tree):
        text = trained_tree.dumps()
        trained_tree.set_params(unknown_outcome="?")
        assert trained_tree.unknown_outcome == "?"
        assert trained_tree.dumps() == text

    @pytest.mark.parametrize(
        "params", [{"depth_limit": 3}, {"max_depth": -2}, {"unknown_outcome": ""}]
    )
    def test_set_params_invalid(self, params):
        tree = DecisionTree()
        with pytest.raises(ValueError):
            tree.set_params(**params)
        assert tree.get_params() == {"max_depth": None, "unknown_outcome": UNKNOWN_OUTCOME}


class TestPickle:
    def test_trained(self, trained_tree):
        loaded = pickle.loads(pickle.dumps(trained_tree))
        assert loaded.dumps() == trained_tree.dumps()
        assert loaded.examples == []
        for expected, values in WEATHER_QUERIES:
            assert loaded.classify(loaded.make_query(values)) == expected

    def test_params_survive(self):
        tree = DecisionTree(max_depth=4, unknown_outcome="?")
        loaded = pickle.loads(pickle.dumps(tree))
        assert loaded.get_params() == {"max_depth": 4, "unknown_outcome": "?"}
        assert not loaded.is_trained

    def test_untrained_keeps_catalogs(self, weather_tree):
        loaded = pickle.loads(pickle.dumps(weather_tree))
        assert not loaded.is_trained
        assert [a.name for a in loaded.attributes.values()] == [
            "outlook",
            "temperature",
            "humidity",
            "wind",
        ]
        assert loaded.classes.values == ["yes", "no"]
