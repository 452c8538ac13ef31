from pydantic import BaseModel, Field, model_validator
from typing import Any, Optional, Dict, List, Literal
from enum import Enum


# ─── Request Models ──────────────────────────────────────────────────

class LintRequest(BaseModel):
    request_id: str
    action: str  # "lint" | "rules"
    payload: Dict[str, Any] = Field(default_factory=dict)
    context: Optional[Dict[str, Any]] = None


class LintPayload(BaseModel):
    path: str = ""
    source: str = ""
    tree: Optional[Dict[str, Any]] = None

    @property
    def lines(self) -> List[str]:
        return self.source.splitlines()


# ─── Diagnostic Output ───────────────────────────────────────────────

class Severity(str, Enum):
    INFO = "info"
    CONVENTION = "convention"
    WARNING = "warning"
    ERROR = "error"


class LocationDetail(BaseModel):
    line: int
    column: int = 0
    end_line: int


class EditDetail(BaseModel):
    action: Literal["insert_after", "replace"]
    text: str
    location: LocationDetail


class DiagnosticDetail(BaseModel):
    rule: str
    message: str
    severity: Severity = Severity.CONVENTION
    location: LocationDetail
    edit: Optional[EditDetail] = None


class LintResult(BaseModel):
    path: str = ""
    passed: bool
    diagnostics: List[DiagnosticDetail] = Field(default_factory=list)


# ─── Lint Configuration ──────────────────────────────────────────────

class CategoryConfig(BaseModel):
    name: str
    methods: List[str]
    supports_through: bool = False
    default_name: str = "unknown"
    name_from_hash_key: bool = False
    fixed_names: Dict[str, str] = Field(default_factory=dict)  # method -> name, e.g. root -> "root"


class ContainerKind(str, Enum):
    MODEL_CLASS = "model_class"
    ROUTES_DRAW = "routes_draw"
    ROUTES_FILE = "routes_file"


class FamilyConfig(BaseModel):
    name: str
    containers: List[ContainerKind] = Field(default_factory=list)
    categories: List[CategoryConfig] = Field(default_factory=list)
    scope_methods: List[str] = Field(default_factory=list)
    path_options: List[str] = Field(default_factory=list)
    through_option: str = "through"
    receiverless_only: bool = True
    include_unmatched: bool = False
    sort_exclude: List[str] = Field(default_factory=list)
    scatter_by: Literal["category", "family"] = "category"

    @model_validator(mode="after")
    def _methods_are_unique(self) -> "FamilyConfig":
        seen: Dict[str, str] = {}
        for category in self.categories:
            for method in category.methods:
                if method in seen:
                    raise ValueError(
                        f"Method '{method}' is listed under both '{seen[method]}' "
                        f"and '{category.name}' in family '{self.name}'"
                    )
                seen[method] = category.name
        return self

    def category_lookup(self) -> Dict[str, CategoryConfig]:
        """Map every member call name to its category"""
        return {method: category for category in self.categories for method in category.methods}

    def category(self, name: str) -> Optional[CategoryConfig]:
        for category in self.categories:
            if category.name == name:
                return category
        return None


class ContainerConfig(BaseModel):
    model_parents: List[str] = Field(default_factory=lambda: ["ApplicationRecord", "ActiveRecord::Base"])
    routes_receiver: str = "Rails.application.routes"
    routes_method: str = "draw"
    routes_file_suffix: str = "routes.rb"


class RuleSettings(BaseModel):
    enabled: bool = True
    severity: Severity = Severity.CONVENTION


class LintConfig(BaseModel):
    families: List[FamilyConfig] = Field(default_factory=list)
    containers: ContainerConfig = Field(default_factory=ContainerConfig)
    rules: Dict[str, RuleSettings] = Field(default_factory=dict)

    def family(self, name: str) -> Optional[FamilyConfig]:
        for family in self.families:
            if family.name == name:
                return family
        return None

    def rule_settings(self, rule_id: str) -> RuleSettings:
        return self.rules.get(rule_id) or RuleSettings()

    def with_rule_overrides(self, overrides: Dict[str, Any]) -> "LintConfig":
        """Copy with per-request rule settings merged over the configured ones"""
        rules = dict(self.rules)
        for rule_id, override in overrides.items():
            current = self.rule_settings(rule_id).model_dump()
            if isinstance(override, bool):
                current["enabled"] = override
            elif isinstance(override, dict):
                current.update(override)
            rules[rule_id] = RuleSettings(**current)
        return self.model_copy(update={"rules": rules})
