import pandas as pd
from id3tree import DecisionTree

if __name__ == "__main__":
    tree = DecisionTree()
    if not tree.load_training_data("resources/weather.examples"):
        raise SystemExit("Unable to load resources/weather.examples")

    tree.train()
    tree.save_tree("resources/weather.dts")

    attributes = list(tree.attributes.values())
    df = pd.DataFrame(
        [
            [a.value_for(example.value_for(a.id)) for a in attributes]
            + [tree.get_class(example.class_id)]
            for example in tree.examples
        ],
        columns=[a.name for a in attributes] + ["play"],
    )
    df.to_csv("resources/weather.csv", index=False)
