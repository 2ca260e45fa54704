import numpy as np

# One (value, row_id) record of an attribute table.
ATTRIBUTE_DTYPE = np.dtype([("value", np.float64), ("row_id", np.int64)])


def create_attribute_tables(inputs: np.ndarray) -> list[np.ndarray]:
    """Build one attribute table per feature, sorted ascending by value.

    Each table is a structured array with fields ``value`` and ``row_id``,
    where ``row_id`` indexes the rows of ``inputs``.
    """
    inputs = np.asarray(inputs, dtype=np.float64)
    if inputs.ndim != 2:
        raise ValueError("inputs must be a 2D array")

    n_samples, n_features = inputs.shape
    row_ids = np.arange(n_samples, dtype=np.int64)
    tables: list[np.ndarray] = []

    for feature_idx in range(n_features):
        column = inputs[:, feature_idx]
        order = np.argsort(column, kind="stable")

        table = np.empty(n_samples, dtype=ATTRIBUTE_DTYPE)
        table["value"] = column[order]
        table["row_id"] = row_ids[order]
        tables.append(table)

    return tables


def split_attribute_tables(
    tables: list[np.ndarray],
    index: int,
    position: int,
    n_rows: int | None = None,
) -> tuple[list[np.ndarray], list[np.ndarray]]:
    """Partition all tables at entry ``position`` of table ``index``.

    Rows at or before ``position`` in the winning table go left. Every table
    is split with a single order-preserving pass, so the children stay
    sorted without another sort.
    """
    split_table = tables[index]
    if not 0 <= position < split_table.size:
        raise ValueError("position must address an entry of the split table")

    if n_rows is None:
        n_rows = int(split_table["row_id"].max()) + 1

    # row_id -> goes left
    goes_left = np.zeros(n_rows, dtype=bool)
    goes_left[split_table["row_id"][: position + 1]] = True

    left_tables: list[np.ndarray] = []
    right_tables: list[np.ndarray] = []
    for table in tables:
        mask = goes_left[table["row_id"]]
        left_tables.append(table[mask])
        right_tables.append(table[~mask])

    return left_tables, right_tables
