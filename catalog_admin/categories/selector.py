"""Cascading main -> sub -> sub-sub category selection."""

from typing import Optional

from catalog_admin.models import Category, CategorySelection


class CategoryHierarchySelector:
    """Tracks a three-level selection over a category tree.

    Selecting a level clears every level below it, so the available lists
    always belong to the currently selected ancestors.
    """

    def __init__(self, tree: list[Category]):
        self.tree = tree
        self.main: Optional[Category] = None
        self.sub: Optional[Category] = None
        self.sub_sub: Optional[Category] = None

    @property
    def available_mains(self) -> list[Category]:
        return list(self.tree)

    @property
    def available_subs(self) -> list[Category]:
        return list(self.main.children) if self.main else []

    @property
    def available_sub_subs(self) -> list[Category]:
        return list(self.sub.children) if self.sub else []

    def select_main(self, category_id: str) -> Category:
        """Select a main category and reset both lower levels.

        Raises:
            ValueError: If no main category has this id
        """
        node = _find(self.tree, category_id)
        if node is None:
            raise ValueError(f"Unknown main category: {category_id}")

        self.main = node
        self.sub = None
        self.sub_sub = None
        return node

    def select_sub(self, category_id: str) -> Category:
        """Select a sub category of the current main and reset the sub-sub."""
        if self.main is None:
            raise ValueError("Select a main category first")

        node = self.main.find_child(category_id)
        if node is None:
            raise ValueError(
                f"Unknown sub category {category_id} under {self.main.name}"
            )

        self.sub = node
        self.sub_sub = None
        return node

    def select_sub_sub(self, category_id: str) -> Category:
        if self.sub is None:
            raise ValueError("Select a sub category first")

        node = self.sub.find_child(category_id)
        if node is None:
            raise ValueError(
                f"Unknown sub-sub category {category_id} under {self.sub.name}"
            )

        self.sub_sub = node
        return node

    def select_path(
        self,
        main_id: str,
        sub_id: Optional[str] = None,
        sub_sub_id: Optional[str] = None,
    ) -> CategorySelection:
        """Select up to three levels in one go and return the selection."""
        if sub_sub_id and not sub_id:
            raise ValueError("A sub-sub category requires a sub category")

        self.select_main(main_id)
        if sub_id:
            self.select_sub(sub_id)
        if sub_sub_id:
            self.select_sub_sub(sub_sub_id)
        return self.selection()

    def clear(self) -> None:
        self.main = None
        self.sub = None
        self.sub_sub = None

    def selection(self) -> CategorySelection:
        return CategorySelection(main=self.main, sub=self.sub, sub_sub=self.sub_sub)

    def require_main(self) -> CategorySelection:
        """Return the selection, insisting that a main category is chosen."""
        if self.main is None:
            raise ValueError("Please select a main category")
        return self.selection()


def _find(nodes: list[Category], category_id: str) -> Optional[Category]:
    for node in nodes:
        if node.id == category_id:
            return node
    return None
