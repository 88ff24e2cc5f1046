"""Per-project schema management: categories and custom fields.

SchemaManager keeps a local copy of one project's categories and settings
document. Settings changes always follow the same shape: read the current
document from the database, merge the changed key, write the whole document
back, and only then update the local copy.

Category renames and reorders are applied locally first. When the database
refuses or fails, the local list is thrown away and re-read, so local state
never stays diverged from what is stored.
"""

import random
from typing import Any, Dict, List, Optional

from logger import get_logger
from models.category import Category, DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_NAME
from models.settings import (
    DEFAULT_SELECT_OPTIONS,
    CustomField,
    FieldType,
    ProjectSettings,
    clean_options,
)
from models.transaction import Transaction
from services.errors import (
    AuthorizationError,
    DuplicateFieldError,
    FieldNotFoundError,
    LedgerlyError,
    MigrationError,
)

logger = get_logger()

UP = "up"
DOWN = "down"


def random_color() -> str:
    return f"#{random.randint(0, 0xFFFFFF):06X}"


def _neighbour_index(index: int, direction: str) -> int:
    if direction == UP:
        return index - 1
    if direction == DOWN:
        return index + 1
    raise ValueError(f"Unknown direction: {direction}")


class SchemaManager:
    """Owns the mutable schema of a single project.

    Args:
        services: Services container (projects, categories, transactions).
        project_id: Project whose schema is managed.
    """

    def __init__(self, services, project_id: int):
        self.services = services
        self.project_id = project_id
        self.categories: List[Category] = []
        self.settings: ProjectSettings = ProjectSettings()

    def load(self) -> "SchemaManager":
        """Read categories and settings from the database."""
        self.fetch_categories()
        self.settings = self.services.projects.get_settings(self.project_id)
        return self

    # Categories

    def fetch_categories(self) -> List[Category]:
        """Replace the local category list with the stored one.

        A project with no categories gets a "General" category with order 0.
        If the user may not create it, the empty list is returned.
        """
        categories = self.services.categories.find_all(self.project_id)

        if not categories:
            try:
                general = self.services.categories.create(
                    self.project_id, DEFAULT_CATEGORY_NAME, DEFAULT_CATEGORY_COLOR, 0
                )
                logger.info(f"Created default category for project {self.project_id}")
                categories = [general]
            except AuthorizationError as e:
                logger.warning(f"Could not create default category: {e}")

        self.categories = categories
        return self.categories

    def add_category(self, name: str, color: Optional[str] = None) -> Category:
        """Append a category at the end of the display order.

        Args:
            name: Category name. Duplicates are allowed.
            color: Hex color; a random one when omitted.

        Returns:
            The created Category.
        """
        name = name.strip()
        if not name:
            raise ValueError("Category name cannot be empty")

        category = self.services.categories.create(
            self.project_id, name, color or random_color(), len(self.categories)
        )
        self.categories.append(category)
        return category

    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        """Rename and/or recolor a category.

        The local copy changes immediately. If the stored row is not updated,
        the local list is re-read and AuthorizationError is raised.

        Returns:
            The locally updated Category.
        """
        category = self._local_category(category_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValueError("Category name cannot be empty")
            category.name = name
        if color is not None:
            category.color = color

        try:
            updated = self.services.categories.update(
                category_id, self.project_id, name=name, color=color
            )
        except Exception:
            self.fetch_categories()
            raise

        if not updated:
            self.fetch_categories()
            raise AuthorizationError(
                f"Category {category_id} was not updated; local changes reverted"
            )

        return category

    def reorder_category(self, index: int, direction: str) -> bool:
        """Move the category at index one step up or down.

        The two categories swap order values. If both carry the same order,
        the moving category alone takes the neighbour's order minus one (up)
        or plus one (down).

        Args:
            index: Position in the local (display-ordered) list.
            direction: UP or DOWN.

        Returns:
            True if something moved, False at either end of the list.
        """
        neighbour = _neighbour_index(index, direction)
        if index < 0 or index >= len(self.categories):
            return False
        if neighbour < 0 or neighbour >= len(self.categories):
            return False

        moving = self.categories[index]
        other = self.categories[neighbour]

        try:
            if moving.order != other.order:
                self.services.categories.swap_order(
                    self.project_id, moving.id, other.order, other.id, moving.order
                )
                moving.order, other.order = other.order, moving.order
            else:
                new_order = other.order - 1 if direction == UP else other.order + 1
                if not self.services.categories.set_order(
                    moving.id, self.project_id, new_order
                ):
                    raise AuthorizationError(
                        f"Reorder of category {moving.id} was not applied"
                    )
                moving.order = new_order
        except Exception:
            logger.error(f"Reorder failed for project {self.project_id}; reloading categories")
            self.fetch_categories()
            raise

        self.categories[index], self.categories[neighbour] = other, moving
        return True

    def delete_category(self, category_id: int) -> bool:
        """Delete a category. Its transactions become uncategorized.

        Returns:
            True if the category was deleted.
        """
        deleted = self.services.categories.delete(category_id, self.project_id)
        if deleted:
            self.categories = [c for c in self.categories if c.id != category_id]
        return deleted

    # Custom fields

    def add_field(
        self,
        name: str,
        field_type: FieldType = FieldType.TEXT,
        options: Optional[List[str]] = None,
    ) -> CustomField:
        """Append a custom field.

        Select fields without usable options get three placeholder options.

        Raises:
            ValueError: If the name is blank.
            DuplicateFieldError: If a field with the same name (any case) exists.
        """
        name = name.strip()
        if not name:
            raise ValueError("Field name cannot be empty")

        current = self._read_settings()
        if current.has_field_named(name):
            raise DuplicateFieldError(f"A field named '{name}' already exists")

        field = self._build_field(name, FieldType(field_type), options)
        self._write_settings(current, custom_fields=[*current.custom_fields, field])
        logger.info(f"Added {field.type.value} field '{name}' to project {self.project_id}")
        return field

    def rename_field(
        self,
        old_name: str,
        new_name: str,
        options: Optional[List[str]] = None,
        field_type: Optional[FieldType] = None,
    ) -> int:
        """Rename a field (optionally changing its options or type).

        The whole field list is rewritten in one settings update. When the
        name actually changed, every transaction holding a value under the old
        name is rewritten, one by one, to hold it under the new name.

        Args:
            old_name: Current field name.
            new_name: New field name.
            options: Replacement options for select fields.
            field_type: Replacement type, if changing it.

        Returns:
            Number of transactions migrated.

        Raises:
            FieldNotFoundError: If old_name is not a field.
            DuplicateFieldError: If new_name collides with another field.
            MigrationError: If the sweep stopped partway. Migrated records are
                not rolled back.
        """
        new_name = new_name.strip()
        if not new_name:
            raise ValueError("Field name cannot be empty")

        current = self._read_settings()
        existing = current.find_field(old_name)
        if existing is None:
            raise FieldNotFoundError(f"No field named '{old_name}'")
        if current.has_field_named(new_name, exclude=old_name):
            raise DuplicateFieldError(f"A field named '{new_name}' already exists")

        new_type = FieldType(field_type) if field_type else existing.type
        if options is None and new_type == existing.type:
            options = existing.options
        replacement = self._build_field(new_name, new_type, options)

        fields = [replacement if f.name == old_name else f for f in current.custom_fields]
        changes: Dict[str, Any] = {"custom_fields": fields}

        renamed = new_name != old_name
        if renamed and old_name in current.custom_field_values:
            values = dict(current.custom_field_values)
            values[new_name] = values.pop(old_name)
            changes["custom_field_values"] = values

        self._write_settings(current, **changes)

        if not renamed:
            return 0
        return self._migrate_field_key(old_name, new_name)

    def delete_field(self, name: str) -> None:
        """Remove a field from the settings.

        Transaction custom_data is left alone; values under the name stay.
        """
        current = self._read_settings()
        if current.find_field(name) is None:
            raise FieldNotFoundError(f"No field named '{name}'")

        self._write_settings(
            current, custom_fields=[f for f in current.custom_fields if f.name != name]
        )
        logger.info(f"Deleted field '{name}' from project {self.project_id}")

    def reorder_field(self, index: int, direction: str) -> bool:
        """Swap a field with its neighbour and write the list back.

        Returns:
            True if something moved, False at either end of the list.
        """
        current = self._read_settings()
        fields = list(current.custom_fields)
        neighbour = _neighbour_index(index, direction)

        if index < 0 or index >= len(fields) or neighbour < 0 or neighbour >= len(fields):
            return False

        fields[index], fields[neighbour] = fields[neighbour], fields[index]
        self._write_settings(current, custom_fields=fields)
        return True

    def import_field_values(self, field_name: str, text: str) -> List[str]:
        """Replace a field's autocomplete suggestions with newline-separated text.

        Lines are trimmed and blanks dropped.

        Returns:
            The stored suggestion list.
        """
        values = [line.strip() for line in text.splitlines() if line.strip()]

        current = self._read_settings()
        suggestions = dict(current.custom_field_values)
        suggestions[field_name] = values
        self._write_settings(current, custom_field_values=suggestions)
        logger.info(f"Imported {len(values)} value(s) for field '{field_name}'")
        return values

    def suggestion_seed(self, field_name: str, transactions: List[Transaction]) -> str:
        """Text to pre-fill the import editor with.

        Stored suggestions first, then values already used in transactions,
        without duplicates.
        """
        seen = {}
        for value in self.settings.custom_field_values.get(field_name, []):
            seen.setdefault(value, None)
        for transaction in transactions:
            value = transaction.custom_data.get(field_name)
            if value is None or str(value).strip() == "":
                continue
            seen.setdefault(str(value).strip(), None)
        return "\n".join(seen)

    # Settings

    def update_settings(self, **changes) -> ProjectSettings:
        """Change top-level settings such as currency or date_format."""
        allowed = {"currency", "date_format", "notifications_enabled", "default_date_period"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unsupported settings: {unknown}")

        current = self._read_settings()
        return self._write_settings(current, **changes)

    def _read_settings(self) -> ProjectSettings:
        return self.services.projects.get_settings(self.project_id)

    def _write_settings(self, current: ProjectSettings, **changes) -> ProjectSettings:
        merged = ProjectSettings.model_validate({**current.to_document(), **_documented(changes)})
        self.services.projects.save_settings(self.project_id, merged)
        self.settings = merged
        return merged

    def _build_field(
        self, name: str, field_type: FieldType, options: Optional[List[str]]
    ) -> CustomField:
        if field_type != FieldType.SELECT:
            return CustomField(name=name, type=field_type)
        return CustomField(
            name=name,
            type=field_type,
            options=clean_options(options) or list(DEFAULT_SELECT_OPTIONS),
        )

    def _migrate_field_key(self, old_name: str, new_name: str) -> int:
        transactions = self.services.transactions.find_by_project(self.project_id)
        pending = [t for t in transactions if old_name in t.custom_data]
        migrated = 0

        logger.info(
            f"Migrating {len(pending)} transaction(s) from '{old_name}' to '{new_name}'"
        )

        for transaction in pending:
            custom_data = dict(transaction.custom_data)
            custom_data[new_name] = custom_data.pop(old_name)
            try:
                updated = self.services.transactions.update_custom_data(
                    transaction.id, custom_data
                )
            except Exception as e:
                logger.error(f"Field migration failed on transaction {transaction.id}: {e}")
                raise MigrationError(
                    f"Migration to '{new_name}' failed", migrated, len(pending) - migrated
                ) from e

            if not updated:
                logger.error(f"Field migration was refused for transaction {transaction.id}")
                raise MigrationError(
                    f"Migration to '{new_name}' was refused",
                    migrated,
                    len(pending) - migrated,
                )

            transaction.custom_data = custom_data
            migrated += 1

        return migrated

    def _local_category(self, category_id: int) -> Category:
        for category in self.categories:
            if category.id == category_id:
                return category
        raise LedgerlyError(f"Category {category_id} is not loaded")


def _documented(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize model values in a partial settings update."""
    documented = {}
    for key, value in changes.items():
        if key == "custom_fields":
            value = [f.to_document() for f in value]
        elif hasattr(value, "value"):
            value = value.value
        documented[key] = value
    return documented
