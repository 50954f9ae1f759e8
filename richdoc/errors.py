class TreeDepthExceededError(ValueError):
    """Error raised when the element tree nests deeper than the configured maximum."""

    def __init__(self, depth: int, max_depth: int):
        self.depth = depth
        self.max_depth = max_depth
        self.message = (
            f"Maximum element-tree depth exceeded - depth={depth}, maximum={max_depth}."
        )
        super().__init__(self.message)
