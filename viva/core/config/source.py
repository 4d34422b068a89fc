"""pydantic-settings sources for viva's YAML configuration tree.

A config root holds one `<section>.yaml` per top-level settings field, with
per-environment replacements under `env.d/<env>/`. The sources read `root`,
`env` and `override` from the init kwargs pydantic-settings exposes as
`current_state`.
"""

import functools
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource, SettingsError

from viva.model import DeploymentEnvironment

# init kwargs that locate the configuration rather than being part of it
SkipKeys = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]
    override: tuple[str, ...]


def env_load_paths(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """Directories searched for YAML files, least specific first"""
    if root.scheme != "file" or root.path is None:
        raise SettingsError(f"configuration root must be a file:// location, got {root}")
    base = Path(root.path)
    if env is DeploymentEnvironment.Local:
        return [base]
    return [base, base / "env.d" / env.value]


def _read_yaml(path: Path) -> t.Any:
    return yaml.safe_load(path.read_text(encoding="utf8"))


class SettingsSource(PydanticBaseSettingsSource):
    """Collects one value per settings field from `lookup()`, which raises
    `KeyError` for fields this source has nothing to say about."""

    @property
    def state(self) -> CurrentState:
        return t.cast(CurrentState, self.current_state)

    def lookup(self, field_name: str) -> t.Any:
        raise NotImplementedError

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        value = self.lookup(field_name)
        return value, field_name, isinstance(value, dict)

    def __call__(self) -> dict[str, t.Any]:
        data: dict[str, t.Any] = {}
        for field_name in self.settings_cls.model_fields:
            if field_name in SkipKeys:
                continue
            try:
                value = self.lookup(field_name)
            except KeyError:
                continue
            except (ValueError, yaml.YAMLError) as e:
                raise SettingsError(f"error reading {field_name!r} from {self.__class__.__name__}") from e
            if value is not None:
                data[field_name] = value
        return data


class OverrideSettingsSource(SettingsSource):
    """Applies `-o some.key.path=value` pairs, each value parsed as YAML.

    Listed ahead of the YAML source, so its values win; nested keys are
    deep-merged into the file contents by pydantic-settings.
    """

    @functools.cached_property
    def tree(self) -> dict[str, t.Any]:
        tree: dict[str, t.Any] = {}
        for option in self.state.get("override", ()):
            dotted, sep, raw = option.partition("=")
            if not sep:
                raise SettingsError(f"override {option!r} is not of the form key.path=value")
            *parents, leaf = dotted.strip().split(".")
            node = tree
            for key in parents:
                node = node.setdefault(key, {})
            node[leaf] = yaml.safe_load(raw.strip())
        return tree

    def lookup(self, field_name: str) -> t.Any:
        return self.tree[field_name]


class YAMLCascadingSettingsSource(SettingsSource):
    """Reads `<field>.yaml` from the config root and the environment directory.
    The most specific file replaces the others wholesale."""

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        return env_load_paths(self.state["root"], self.state["env"])

    def lookup(self, field_name: str) -> t.Any:
        found = [fn for fn in (path / f"{field_name}.yaml" for path in self.load_paths) if fn.exists()]
        if not found:
            raise KeyError(field_name)
        return _read_yaml(found[-1])


class YAMLSecretsSource(SettingsSource):
    """Reads a single secrets file: `root` itself when it names a file,
    otherwise the most specific `secrets.yaml` along the load paths."""

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        root = self.state["root"]
        if root.scheme == "file" and root.path is not None and Path(root.path).is_file():
            return _read_yaml(Path(root.path)) or {}
        for path in reversed(env_load_paths(root, self.state["env"])):
            if (path / "secrets.yaml").exists():
                return _read_yaml(path / "secrets.yaml") or {}
        return {}

    def lookup(self, field_name: str) -> t.Any:
        return self.secrets[field_name]
