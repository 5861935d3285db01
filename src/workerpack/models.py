"""
Pydantic models for all workerpack configuration and result records.

All data structures are defined here for single-source-of-truth.
Pydantic provides validation for hand-written JSON build configs and
serialisation of build results.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# --- Post-build transforms ---

class PostBuildConfig(BaseModel):
    """Which text transforms run between minification and obfuscation."""
    remove_console_logs: bool = True
    replace_name_calls: bool = True
    remove_non_ascii: bool = True
    normalize_whitespace: bool = True
    console_object: str = "console"
    console_methods: list[str] = ["log", "error", "warn", "info", "debug"]
    marker_name: str = "__name"
    marker_label_length: int = Field(default=4, ge=1)


# --- Obfuscator ---

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LockOptions(_CamelModel):
    """js-confuser ``lock`` block. All off: each one is slow or breaks workers."""
    anti_debug: bool = False
    integrity: bool = False
    self_defending: bool = False
    tamper_protection: bool = False


class ObfuscatorOptions(_CamelModel):
    """
    js-confuser options, in snake_case.

    Dumped with ``by_alias=True`` to get the camelCase keys js-confuser reads.
    ``stringConcealing`` and ``customStringEncodings`` are functions and are
    attached by the driver script, not here.
    """
    target: str = "browser"

    rename_variables: bool = True
    rename_globals: bool = True
    rename_labels: bool = True
    identifier_generator: str = "mangled"

    moved_declarations: bool = True
    object_extraction: bool = True
    compact: bool = True
    hexadecimal_numbers: bool = True
    ast_scrambler: bool = True
    calculator: bool = False
    dead_code: bool = False

    dispatcher: bool = False
    duplicate_literals_removal: bool = False
    flatten: bool = False
    preserve_function_length: bool = False
    string_splitting: bool = False

    global_concealing: bool = False
    opaque_predicates: bool = False
    shuffle: bool = False
    variable_masking: bool = False
    string_compression: bool = False

    control_flow_flattening: bool = False
    minify: bool = False  # conflicts with inlined CSS
    rgf: bool = False

    lock: LockOptions = Field(default_factory=LockOptions)

    def to_js(self) -> dict:
        return self.model_dump(by_alias=True)


# --- Cipher ---

def _power_of_two(value: int) -> int:
    # XOR of two codes below a power of two stays below it.
    if value & (value - 1):
        raise ValueError(f"cipher base must be a power of two, got {value}")
    return value


class CipherKeys(BaseModel):
    """Shift/XOR keys of the string-concealment cipher."""
    base: int = Field(default=128, ge=2)
    shift: int = Field(ge=1)
    xor: int = Field(ge=1)

    @field_validator("base")
    @classmethod
    def _base_power_of_two(cls, value: int) -> int:
        return _power_of_two(value)

    @model_validator(mode="after")
    def _keys_below_base(self) -> "CipherKeys":
        if self.shift >= self.base or self.xor >= self.base:
            raise ValueError(f"keys must be smaller than base {self.base}")
        return self


# --- Build ---

DEFAULT_PAGES = {
    "panel": "__PANEL_HTML_CONTENT__",
    "login": "__LOGIN_HTML_CONTENT__",
    "error": "__ERROR_HTML_CONTENT__",
    "secrets": "__SECRETS_HTML_CONTENT__",
}


class BuildConfig(BaseModel):
    """Project layout and tool settings for one build."""
    project_root: Path = Field(default_factory=Path.cwd)
    asset_dir: Path = Path("src/assets")
    entry: Path = Path("src/worker.js")
    icon: Path = Path("src/assets/favicon.ico")
    words_file: Path = Path("sensitive_words_auto.txt")
    output_dir: Path = Path("output")
    script_name: str = "worker.js"
    archive_name: str = "worker.zip"
    archive_entry: str = "_worker.js"

    pages: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PAGES))  # page dir -> constant
    icon_constant: str = "__ICON__"
    external: list[str] = ["cloudflare:sockets"]
    target: str = "es2020"
    platform: str = "browser"

    obfuscate: bool = True
    cipher_base: int = Field(default=128, ge=2)
    node_command: str = "node"

    post_build: PostBuildConfig = Field(default_factory=PostBuildConfig)
    obfuscator: ObfuscatorOptions = Field(default_factory=ObfuscatorOptions)

    @field_validator("cipher_base")
    @classmethod
    def _cipher_base_power_of_two(cls, value: int) -> int:
        return _power_of_two(value)

    def resolve(self, path: Path) -> Path:
        """Resolve *path* against the project root unless it is absolute."""
        path = Path(path)
        return path if path.is_absolute() else self.project_root / path


# --- Results ---

class StageSize(BaseModel):
    """Size of the script after one pipeline stage."""
    stage: str
    size: int = Field(ge=0)

    @property
    def kilobytes(self) -> int:
        return round(self.size / 1024)


class PackageResult(BaseModel):
    """Files written by the packager."""
    script_path: Path
    archive_path: Path
    size: int = 0


class BuildResult(BaseModel):
    """Result returned after a successful build."""
    pages: list[str] = []
    sizes: list[StageSize] = []
    keys: CipherKeys | None = None
    script_path: Path
    archive_path: Path
