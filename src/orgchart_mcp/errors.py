class OrgChartError(Exception):
    pass


class TreeStructureError(OrgChartError, ValueError):
    """A node id was reached twice while walking the tree."""

    def __init__(self, node_id: str) -> None:
        super().__init__(
            f"Node '{node_id}' appears more than once in the tree "
            "(duplicate id or cycle)."
        )
        self.node_id = node_id


class RecipeError(OrgChartError, ValueError):
    pass
