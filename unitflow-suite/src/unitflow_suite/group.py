"""Group contexts for test registration."""

from __future__ import annotations

import logging

from unitflow_suite.action import Action, sequence

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = " "


class GroupContext:
    """One nesting level of test grouping.

    A context carries the setup and teardown chains that apply to tests
    registered inside it. The chains are composed when an action is set, not
    when a test looks them up: a child's setup runs the parent chain first,
    a child's teardown runs its own action first and then the parent chain.

    Example:
        root = GroupContext()
        parser = root.enter("parser")
        parser.set_setup(open_fixture)
        tokens = parser.enter("tokens")
        tokens.qualify("splits words")   # "parser tokens splits words"
    """

    def __init__(
        self,
        parent: GroupContext | None = None,
        name: str = "",
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        """Initialize the context.

        Args:
            parent: Enclosing context, or None for the root.
            name: Description of this group.
            separator: String placed between name segments.
        """
        self._parent = parent
        self._name = name
        self._separator = separator
        self._setup: Action | None = parent.setup if parent is not None else None
        self._teardown: Action | None = parent.teardown if parent is not None else None

    @property
    def parent(self) -> GroupContext | None:
        """Return the enclosing context."""
        return self._parent

    @property
    def name(self) -> str:
        """Return this group's own description."""
        return self._name

    @property
    def is_root(self) -> bool:
        """Return True for the top-level context."""
        return self._parent is None

    @property
    def setup(self) -> Action | None:
        """Return the composed setup chain."""
        return self._setup

    @property
    def teardown(self) -> Action | None:
        """Return the composed teardown chain."""
        return self._teardown

    @property
    def full_name(self) -> str:
        """Return the dotted name of this group, omitting empty segments."""
        if self._parent is None:
            return self._name
        parent_name = self._parent.full_name
        if not parent_name:
            return self._name
        if not self._name:
            return parent_name
        return f"{parent_name}{self._separator}{self._name}"

    def enter(self, name: str) -> GroupContext:
        """Create a nested context.

        Args:
            name: Description of the nested group.

        Returns:
            The new child context.
        """
        return GroupContext(parent=self, name=name, separator=self._separator)

    def set_setup(self, action: Action) -> None:
        """Replace this group's setup action.

        Args:
            action: Called before each test; may return an awaitable.
        """
        parent_setup = self._parent.setup if self._parent is not None else None
        self._setup = sequence(parent_setup, action)
        logger.debug("Setup set for group '%s'", self.full_name)

    def set_teardown(self, action: Action) -> None:
        """Replace this group's teardown action.

        Args:
            action: Called after each test; may return an awaitable.
        """
        parent_teardown = self._parent.teardown if self._parent is not None else None
        self._teardown = sequence(action, parent_teardown)
        logger.debug("Teardown set for group '%s'", self.full_name)

    def qualify(self, description: str | None) -> str:
        """Return the fully qualified description of a test in this group.

        Args:
            description: The test's own description.

        Returns:
            Group name and description joined with the separator.
        """
        group = self.full_name
        if description is None:
            return group
        return f"{group}{self._separator}{description}" if group else description
