"""Configuration file support for huntcore.

Loads .huntcore.yml from the scan target (or any parent directory, or an
explicit path) and builds the rules to run.

Config format example:

    text_rules:
      - id: HC-TEXT-1
        type: or            # regular | or | not | and
        expressions:
          - "(?i)password\\s*=\\s*['\\"][^'\\"]+['\\"]"
        ignore_case: false

    call_rules:
      - id: HC-CALL-1
        name: child_process.exec
        args_index: 1       # position of the argument, starting at 1
        predicate: constant # constant | any

    exclude_paths:
      - "test/"
      - "**/*.spec.js"

    extensions: [".js", ".mjs"]
    max_workers: 8
    fail_fast: false
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from huntcore import call
from huntcore.analysis import Analyzer
from huntcore.errors import ConfigError
from huntcore.javascript import EXTENSIONS as JS_EXTENSIONS
from huntcore.predicates import PREDICATES, ConstantArgument
from huntcore.text import MatchType, TextRule

CONFIG_NAMES = ('.huntcore.yml', '.huntcore.yaml')


def default_call_rules() -> List[Analyzer]:
    return [
        call.Analyzer(id="HC-JS-EVAL", name="eval", args_index=1,
                      arg_value=ConstantArgument()),
        call.Analyzer(id="HC-JS-FUNCTION", name="Function", args_index=1,
                      arg_value=ConstantArgument()),
        call.Analyzer(id="HC-JS-EXEC", name="child_process.exec", args_index=1,
                      arg_value=ConstantArgument()),
        call.Analyzer(id="HC-JS-EXECSYNC", name="child_process.execSync", args_index=1,
                      arg_value=ConstantArgument()),
    ]


def default_text_rules() -> List[TextRule]:
    return [
        TextRule(id="HC-TEXT-PRIVATE-KEY", type=MatchType.OR_MATCH, expressions=[
            re.compile(r'-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----'),
        ]),
        TextRule(id="HC-TEXT-INNERHTML", type=MatchType.REGULAR, expressions=[
            re.compile(r'\.innerHTML\s*=(?!=)'),
        ]),
    ]


@dataclass
class HuntConfig:
    """Parsed configuration from .huntcore.yml."""
    text_rules: List[TextRule] = field(default_factory=default_text_rules)
    call_rules: List[Analyzer] = field(default_factory=default_call_rules)
    exclude_paths: List[str] = field(default_factory=list)
    extensions: List[str] = field(default_factory=lambda: sorted(JS_EXTENSIONS))
    max_workers: Optional[int] = None
    fail_fast: bool = False

    @property
    def rules(self) -> list:
        return [*self.text_rules, *self.call_rules]


def find_config(target_path: str) -> Optional[str]:
    """Walk up from target_path looking for a config file."""
    search_dir = os.path.abspath(target_path)
    if os.path.isfile(search_dir):
        search_dir = os.path.dirname(search_dir)

    while True:
        for name in CONFIG_NAMES:
            candidate = os.path.join(search_dir, name)
            if os.path.isfile(candidate):
                return candidate
        parent = os.path.dirname(search_dir)
        if parent == search_dir:
            return None  # Reached filesystem root
        search_dir = parent


def load_config(target_path: str, config_path: str = None) -> HuntConfig:
    """Load the configuration for a scan of target_path.

    Args:
        target_path: The scan target (used to find .huntcore.yml)
        config_path: Explicit config path (overrides auto-discovery)

    Returns:
        The parsed HuntConfig, or the defaults when no file is found.
    """
    if config_path:
        if not os.path.isfile(config_path):
            raise ConfigError(f"config file not found: {config_path}")
        return parse_config_file(config_path)

    found = find_config(target_path)
    if found is None:
        return HuntConfig()
    return parse_config_file(found)


def parse_config_file(config_path: str) -> HuntConfig:
    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")
    return parse_config(data)


def _require(entry: Dict[str, Any], key: str, kind: str) -> Any:
    if key not in entry:
        raise ConfigError(f"{kind} rule {entry.get('id', '?')!r}: missing '{key}'")
    return entry[key]


def parse_text_rule(entry: Dict[str, Any]) -> TextRule:
    rule_id = str(_require(entry, 'id', 'text'))
    type_name = str(entry.get('type', 'regular')).lower()
    try:
        match_type = MatchType(type_name)
    except ValueError:
        raise ConfigError(f"text rule {rule_id!r}: unknown type {type_name!r}") from None

    flags = re.IGNORECASE if entry.get('ignore_case') else 0
    expressions = _require(entry, 'expressions', 'text')
    if not isinstance(expressions, list):
        raise ConfigError(f"text rule {rule_id!r}: 'expressions' must be a list")
    compiled = []
    for expression in expressions:
        try:
            compiled.append(re.compile(str(expression), flags))
        except re.error as e:
            raise ConfigError(f"text rule {rule_id!r}: bad expression {expression!r}: {e}") from e
    return TextRule(id=rule_id, type=match_type, expressions=compiled)


def parse_call_rule(entry: Dict[str, Any]) -> Analyzer:
    rule_id = str(_require(entry, 'id', 'call'))
    predicate_name = str(entry.get('predicate', 'constant'))
    if predicate_name not in PREDICATES:
        raise ConfigError(f"call rule {rule_id!r}: unknown predicate {predicate_name!r}")
    try:
        args_index = int(entry.get('args_index', 1))
    except (TypeError, ValueError):
        raise ConfigError(f"call rule {rule_id!r}: 'args_index' must be an integer") from None
    if args_index < 1:
        raise ConfigError(f"call rule {rule_id!r}: 'args_index' starts at 1, got {args_index}")
    return call.Analyzer(
        id=rule_id,
        name=str(_require(entry, 'name', 'call')),
        args_index=args_index,
        arg_value=PREDICATES[predicate_name](),
    )


def parse_config(data: Dict[str, Any]) -> HuntConfig:
    config = HuntConfig()

    # Rules listed in the file replace the built-in ones of the same kind.
    text_rules = data.get('text_rules')
    if isinstance(text_rules, list):
        config.text_rules = [parse_text_rule(e) for e in text_rules if isinstance(e, dict)]

    call_rules = data.get('call_rules')
    if isinstance(call_rules, list):
        config.call_rules = [parse_call_rule(e) for e in call_rules if isinstance(e, dict)]

    exclude = data.get('exclude_paths', [])
    if isinstance(exclude, list):
        config.exclude_paths = [str(p) for p in exclude]

    extensions = data.get('extensions')
    if isinstance(extensions, list):
        config.extensions = [e if str(e).startswith('.') else f'.{e}' for e in map(str, extensions)]

    if data.get('max_workers') is not None:
        try:
            config.max_workers = int(data['max_workers'])
        except (TypeError, ValueError):
            raise ConfigError("'max_workers' must be an integer") from None
        if config.max_workers < 1:
            raise ConfigError("'max_workers' must be at least 1")
    config.fail_fast = bool(data.get('fail_fast', False))

    return config
