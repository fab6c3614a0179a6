import warnings
from typing import Optional

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.metrics import accuracy_score
from typing_extensions import Self

from id3tree.example import ClassificationData, Example
from id3tree.tree import DecisionTree
from id3tree.utils import convert_input_array, convert_input_frame


class ID3Classifier(ClassifierMixin, BaseEstimator):
    """
    A scikit-learn compatible classifier backed by an ID3 :class:`DecisionTree`.

    Every column is treated as categorical; values are compared by their
    string form. The values seen during :meth:`fit` (in ``np.unique`` order)
    form each attribute's catalog. Columns, values and labels are stored in
    the tree by position (``x0``, ``x1``, ... for columns, ``0``, ``1``, ...
    for values and labels), so any value can be used, including ones with
    whitespace or differing only by case.
    """

    def __init__(self, *, max_depth: Optional[int] = None):
        """
        Parameters
        ----------
        max_depth : int, optional
            Depth at which nodes are turned into majority-class leaves. If
            None, the tree grows until leaves are pure or attributes run out.

        Attributes
        ----------
        tree_ : DecisionTree
            The fitted tree.
        classes_ : ndarray
            Class labels seen during :meth:`fit`.
        categories_ : list of ndarray
            Values seen during :meth:`fit` for each column, as strings.
        feature_names_in_ : list of str
            Column names seen during :meth:`fit`.
        n_features_in_ : int
            Number of columns seen during :meth:`fit`.
        """
        self.max_depth = max_depth

    def fit(self, X, y) -> Self:
        """
        Fit the tree on categorical data.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training data. Can be a Pandas or Polars DataFrame, or a 2D Numpy array.
        y : array-like of shape (n_samples,)
            Class labels.

        Returns
        -------
        self : object
            Returns self.
        """
        features_, X_ = convert_input_frame(X)
        y_ = convert_input_array(y)
        if X_.shape[0] != y_.shape[0]:
            raise ValueError(
                f"X has {X_.shape[0]} rows but y has {y_.shape[0]} labels."
            )
        if X_.shape[0] == 0:
            raise ValueError("Cannot fit on an empty dataset.")

        self.classes_, y_index = np.unique(y_, return_inverse=True)
        self.feature_names_in_ = features_
        self.n_features_in_ = len(features_)

        tree = DecisionTree(max_depth=self.max_depth)
        class_ids = tree.set_classes(_tokens(len(self.classes_))).value_ids
        self.categories_ = []
        codes = np.empty(X_.shape, dtype=np.intp)
        for i in range(X_.shape[1]):
            categories, codes[:, i] = np.unique(X_[:, i], return_inverse=True)
            self.categories_.append(categories)
            tree.add_attribute(f"x{i}", _tokens(len(categories)))

        attributes = list(tree.attributes.values())
        for row, label in zip(codes, y_index):
            example = Example(class_ids[label])
            for attribute, code in zip(attributes, row):
                example.set_value(attribute.id, attribute.value_ids[code])
            tree.add_example(example)

        self.tree_ = tree.train()
        return self

    def predict(self, X) -> np.ndarray:
        """
        Predict class labels.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input features, with the columns seen during :meth:`fit`.

        Returns
        -------
        predictions : ndarray of shape (n_samples,)
            Predicted class labels.

        Raises
        ------
        KeyError
            If a sample carries a value not seen during :meth:`fit` for an
            attribute the tree splits on.
        """
        features_, X_ = convert_input_frame(X)
        if len(features_) != self.n_features_in_:
            raise ValueError(
                f"X has {len(features_)} features, expected {self.n_features_in_}."
            )
        if features_ != self.feature_names_in_:
            warnings.warn("Column names differ from those seen during fit.")

        attributes = list(self.tree_.attributes.values())
        lookups = [
            {value: code for code, value in enumerate(categories)}
            for categories in self.categories_
        ]
        indices = np.empty(X_.shape[0], dtype=np.intp)
        for i, row in enumerate(X_):
            # Unseen values are left out; they only fail if the tree needs them.
            query = ClassificationData()
            for attribute, lookup, value in zip(attributes, lookups, row):
                code = lookup.get(value)
                if code is not None:
                    query.set_value(attribute.id, attribute.value_ids[code])
            indices[i] = int(self.tree_.classify(query))
        return self.classes_[indices]

    def score(self, X, y, sample_weight=None):
        """Returns the mean accuracy on the given test data and labels."""
        preds = self.predict(X)
        return accuracy_score(y, preds, sample_weight=sample_weight)


def _tokens(n: int):
    return [str(i) for i in range(n)]
