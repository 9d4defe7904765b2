"""Message catalog and locale selection for user-facing output."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

DEFAULT_LOCALE = "en"

_PLACEHOLDER = re.compile(r"%\{(\w+)\}")

# key -> (English, Japanese); a missing Japanese text falls back to English.
_CATALOG: dict[str, tuple[str, str | None]] = {
    "environment_check": ("Environment check:", "環境チェック:"),
    "tool_found": ("[OK] %{tool}: %{path}", None),
    "tool_not_found": ("[--] %{tool}: not found", "[--] %{tool}: 見つかりません"),
    "help_failed": ("Failed to show help", "ヘルプの表示に失敗"),
    "help_warning": ("Warning: help exited with an error", "警告: ヘルプがエラー終了"),
    "config_not_found": (
        "Configuration not found. Run 'sgdktool setup' first.",
        "設定がありません。'sgdktool setup' を実行してください。",
    ),
    "config_not_found_for_project": (
        "config.toml not found. Run 'sgdktool setup' first.",
        "config.toml がありません。'sgdktool setup' を実行してください。",
    ),
    "config_read_failed": ("Failed to read config.toml", "config.toml の読込失敗"),
    "toml_parse_failed": ("Failed to parse config.toml", "config.toml の解析失敗"),
    "sgdk_config_exists": ("SGDK configuration: %{path}", "SGDK設定: %{path}"),
    "sgdk_path": ("SGDK path: %{path}", "SGDKパス: %{path}"),
    "version": ("Version: %{version}", "バージョン: %{version}"),
    "commit_id": ("Commit ID: %{commit}", "コミットID: %{commit}"),
    "gens_path": ("Gens path: %{path}", "Gensパス: %{path}"),
    "gens_not_installed": ("Gens is not installed", "Gens 未インストール"),
    "blastem_path": ("BlastEm path: %{path}", "BlastEmパス: %{path}"),
    "blastem_not_installed": ("BlastEm is not installed", "BlastEm 未インストール"),
    "sgdk_doc_exists": ("SGDK documentation: %{path}", "SGDKドキュメント: %{path}"),
    "sgdk_doc_not_found": ("SGDK documentation not found", "SGDKドキュメントなし"),
    "sgdk_doc_doxygen_missing": (
        "SGDK documentation not generated; doxygen is not installed.",
        "ドキュメント未生成、doxygen 未インストール。",
    ),
    "sgdk_doc_not_generated": (
        "SGDK documentation not generated. Run 'sgdktool setup' again.",
        "ドキュメント未生成。'sgdktool setup' を再実行してください。",
    ),
    "sgdk_doc_generated": ("SGDK documentation generated.", "ドキュメントを生成しました。"),
    "project_dir_not_found": ("Project directory not found.", "プロジェクトがありません。"),
    "project_exists": ("'%{name}' already exists.", "'%{name}' は既に存在します。"),
    "creating_project": ("Creating project '%{name}'...", "'%{name}' を作成中..."),
    "project_created": ("Project '%{name}' created.", "'%{name}' を作成しました。"),
    "compiledb_check": ("Checking for compiledb...", "compiledb を確認中..."),
    "compiledb_found": ("compiledb found.", "compiledb あり。"),
    "compiledb_not_found": ("compiledb not found; skipping.", "compiledb なし。スキップ。"),
    "running_compiledb": ("Running compiledb make...", "compiledb make 実行中..."),
    "compiledb_success": ("compile_commands.json generated.", "compile_commands.json 生成。"),
    "compiledb_failed": ("compiledb make failed.", "compiledb make 失敗。"),
    "compiledb_symlink_created": (
        "SGDK path contains spaces; using a temporary symlink.",
        "SGDKパスに空白があるため一時リンクを使用。",
    ),
    "compiledb_symlink_failed": ("Failed to create the symlink.", "一時リンク作成失敗。"),
    "creating_clangd_config": ("Creating .clangd...", ".clangd 作成中..."),
    "clangd_config_created": (".clangd created.", ".clangd 作成完了。"),
    "creating_vscode_config": ("Creating .vscode config...", ".vscode 設定作成中..."),
    "vscode_config_created": (".vscode config created.", ".vscode 設定作成完了。"),
    "creating_gitignore": ("Creating .gitignore...", ".gitignore 作成中..."),
    "gitignore_created": (".gitignore created.", ".gitignore 作成完了。"),
    "git_not_found": ("git not found. Please install git.", "git がありません。"),
    "sgdk_exists_overwrite_prompt": (
        "SGDK is already installed. Update it? (y/N)",
        "SGDK は既にあります。更新しますか？ (y/N)",
    ),
    "prompt": ("> ", None),
    "sgdk_overwrite_cancelled": ("Cancelled.", "キャンセルしました。"),
    "sgdk_git_fetch_failed": ("git fetch failed.", "git fetch 失敗。"),
    "sgdk_git_checkout_failed": ("git checkout failed.", "git checkout 失敗。"),
    "sgdk_git_missing": ("SGDK directory is not a git repository.", "git リポジトリではありません。"),
    "sgdk_config_updating": ("Updating config.toml...", "config.toml 更新中..."),
    "sgdk_config_updated": ("config.toml updated.", "config.toml 更新完了。"),
    "cloning_sgdk": ("Cloning SGDK...", "SGDK をクローン中..."),
    "git_clone_failed": ("git clone failed.", "git clone 失敗。"),
    "saving_config": ("Saving configuration...", "設定を保存中..."),
    "sgdk_setup_complete": ("SGDK setup complete: %{path}", "SGDK セットアップ完了: %{path}"),
    "wine_downloading": ("Downloading generate_wine.sh...", "generate_wine.sh 取得中..."),
    "wine_generating": ("Generating wine wrappers...", "wine ラッパー生成中..."),
    "wine_script_failed": ("generate_wine.sh failed.", "generate_wine.sh 失敗。"),
    "wine_wrapper_complete": ("Wine wrappers generated.", "wine ラッパー生成完了。"),
    "uninstall_all_confirm": (
        "Remove SGDK, emulators and configuration? (y/N)",
        "SGDK、エミュレータ、設定を削除しますか？ (y/N)",
    ),
    "operation_cancelled": ("Operation cancelled.", "操作をキャンセルしました。"),
    "removing_sgdk_installation": ("Removing SGDK: %{path}", "SGDK 削除中: %{path}"),
    "sgdk_and_config_removed": ("SGDK and configuration removed.", "SGDK と設定を削除しました。"),
    "nothing_to_remove": ("Nothing to remove.", "削除するものはありません。"),
}

_MESSAGES: dict[str, dict[str, str]] = {
    "en": {key: english for key, (english, _) in _CATALOG.items()},
    "ja": {key: japanese for key, (_, japanese) in _CATALOG.items() if japanese},
}

_current_locale = DEFAULT_LOCALE


def detect_locale(environ: Mapping[str, str] | None = None) -> str:
    """Pick "ja" or "en" from LANG, falling back to LC_ALL."""
    env = os.environ if environ is None else environ
    if "LANG" in env:
        locale = env["LANG"]
    else:
        locale = env.get("LC_ALL", DEFAULT_LOCALE)
    return "ja" if locale.startswith("ja") else "en"


def init_locale(environ: Mapping[str, str] | None = None) -> str:
    """Set the active locale from the environment and return it."""
    locale = detect_locale(environ)
    set_locale(locale)
    return locale


def set_locale(locale: str) -> None:
    """Make *locale* the active locale for :func:`t`.

    Raises ValueError for a locale that has no message catalog.
    """
    global _current_locale
    if locale not in _MESSAGES:
        supported = ", ".join(sorted(_MESSAGES))
        raise ValueError(f"unsupported locale {locale!r}; expected one of: {supported}")
    _current_locale = locale


def get_locale() -> str:
    """Return the active locale."""
    return _current_locale


def t(key: str, **kwargs: object) -> str:
    """Translate *key* into the active locale, filling %{name} placeholders."""
    template = (
        _MESSAGES.get(_current_locale, {}).get(key)
        or _MESSAGES[DEFAULT_LOCALE].get(key)
        or key
    )

    def fill(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(kwargs[name]) if name in kwargs else match.group(0)

    return _PLACEHOLDER.sub(fill, template)