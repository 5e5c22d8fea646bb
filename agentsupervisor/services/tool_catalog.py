"""Static tool classification used by the execution strategy."""

from __future__ import annotations

from collections.abc import Mapping

from agentsupervisor.models.execution import ToolCategory

DEFAULT_TOOL_CATEGORIES: dict[str, ToolCategory] = {
    # --- Search ---
    "searchEmbeddedCode": ToolCategory.SEARCH,
    "searchLinearIssues": ToolCategory.SEARCH,
    "searchSlackMessages": ToolCategory.SEARCH,
    # --- Read ---
    "getFileContent": ToolCategory.READ,
    "getRawFileContent": ToolCategory.READ,
    "readRelatedFiles": ToolCategory.READ,
    "getIssueContext": ToolCategory.READ,
    # --- Analysis ---
    "analyzeFileStructure": ToolCategory.ANALYSIS,
    "getRepositoryStructure": ToolCategory.ANALYSIS,
    "getDirectoryStructure": ToolCategory.ANALYSIS,
    # --- Action ---
    "createFile": ToolCategory.ACTION,
    "editCode": ToolCategory.ACTION,
    "addCode": ToolCategory.ACTION,
    "removeCode": ToolCategory.ACTION,
    "editUrl": ToolCategory.ACTION,
    "createBranch": ToolCategory.ACTION,
    "createPullRequest": ToolCategory.ACTION,
    "updateIssueStatus": ToolCategory.ACTION,
    "createLinearComment": ToolCategory.ACTION,
    "setIssueParent": ToolCategory.ACTION,
    "addIssueToProject": ToolCategory.ACTION,
    "createAgentActivity": ToolCategory.ACTION,
    "sendSlackMessage": ToolCategory.ACTION,
    "sendChannelMessage": ToolCategory.ACTION,
    "sendDirectMessage": ToolCategory.ACTION,
}


class ToolCatalog:
    """Maps tool names to categories. Unknown tools are uncategorized."""

    def __init__(self, categories: Mapping[str, ToolCategory] | None = None) -> None:
        self._categories = dict(DEFAULT_TOOL_CATEGORIES if categories is None else categories)

    def category_for(self, tool_name: str) -> ToolCategory:
        return self._categories.get(tool_name, ToolCategory.UNCATEGORIZED)

    def register(self, tool_name: str, category: ToolCategory) -> None:
        self._categories[tool_name] = category

    def tools_in(self, category: ToolCategory) -> list[str]:
        return sorted(name for name, cat in self._categories.items() if cat == category)
