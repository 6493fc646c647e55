#!/usr/bin/env python3
"""
Configuration Management for Tenboard Layout Search

This module provides structured configuration loading, validation,
and management for chord layout search. It handles the corpus source,
the alphabet to lay out, metric weights, search budget and acceptance
policy, output paths and logging.

Features:
- YAML-based configuration with comprehensive validation
- Metric weights checked against the registered evaluators
- Automatic creation of the results folder
- Clear error messages for configuration issues

"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

from reference_layouts import REFERENCE_LAYOUTS
from scoring import default_weights, validate_weights
from search import ACCEPTANCE_POLICIES, NEIGHBORHOODS
from tenboard import iterate_chords

DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyz .,'"


@dataclass
class CorpusConfig:
    """Where character and bigram frequencies come from."""
    text_file: str = ""
    item_frequency_file: str = ""
    item_pair_frequency_file: str = ""


@dataclass
class LayoutConfig:
    """Characters to lay out and the chords available to them."""
    alphabet: str = DEFAULT_ALPHABET
    max_chord_keys: int = 2
    seed_layout: str = ""

    @property
    def alphabet_list(self) -> List[str]:
        return list(self.alphabet)


@dataclass
class SearchConfig:
    """Search budget and neighborhood settings."""
    iterations: Optional[int] = 20000
    time_limit: Optional[float] = None
    stagnation_limit: Optional[int] = 2000
    neighborhood: str = 'random'
    batch_size: int = 8
    relocate_rate: float = 0.1
    seed: Optional[int] = None
    processes: Optional[int] = None
    n_solutions: int = 5
    show_progress_bar: bool = True


@dataclass
class AcceptanceConfig:
    """Acceptance policy and its annealing schedule."""
    policy: str = 'hill_climb'
    initial_temperature: float = 0.01
    cooling_rate: float = 0.9995
    min_temperature: float = 1e-5

    def policy_params(self) -> Dict[str, float]:
        if self.policy == 'simulated_annealing':
            return {
                'initial_temperature': self.initial_temperature,
                'cooling_rate': self.cooling_rate,
                'min_temperature': self.min_temperature,
            }
        return {}


@dataclass
class OutputConfig:
    """Result files and comparison baselines."""
    results_folder: str = "output/layouts"
    save_results: bool = True
    references: List[str] = field(default_factory=lambda: ['asetniop'])


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Complete configuration container."""
    corpus: CorpusConfig
    layout: LayoutConfig
    weights: Dict[str, float]
    search: SearchConfig
    acceptance: AcceptanceConfig
    output: OutputConfig
    logging: LoggingConfig

    # Internal tracking
    _config_path: str = "config.yaml"


def _section(raw_config: dict, name: str) -> dict:
    section = raw_config.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping, got {type(section).__name__}")
    return section


def load_config(config_path: str = "config.yaml") -> Config:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Path to configuration YAML file

    Returns:
        Validated Config object with all settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If configuration is invalid
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML configuration: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration file must contain a mapping of sections")

    known_sections = {'corpus', 'layout', 'weights', 'search', 'acceptance', 'output', 'logging'}
    unknown_sections = sorted(set(raw_config) - known_sections)
    if unknown_sections:
        raise ValueError(f"Unknown configuration sections: {unknown_sections}")

    # Parse configuration sections
    sections = {}
    for name, cls in (('corpus', CorpusConfig), ('layout', LayoutConfig), ('search', SearchConfig),
                      ('acceptance', AcceptanceConfig), ('output', OutputConfig),
                      ('logging', LoggingConfig)):
        try:
            sections[name] = cls(**_section(raw_config, name))
        except TypeError as e:
            raise ValueError(f"Error parsing {name} configuration: {e}")

    raw_weights = raw_config.get('weights')
    if raw_weights is None:
        weights = default_weights()
    elif isinstance(raw_weights, dict):
        weights = dict(raw_weights)
    else:
        raise ValueError("weights must be a mapping of metric name to weight")

    config = Config(
        corpus=sections['corpus'],
        layout=sections['layout'],
        weights=weights,
        search=sections['search'],
        acceptance=sections['acceptance'],
        output=sections['output'],
        logging=sections['logging'],
        _config_path=config_path,
    )

    # Validate the complete configuration
    validate_config(config)

    if config.output.save_results:
        os.makedirs(config.output.results_folder, exist_ok=True)

    return config


def validate_config(config: Config) -> None:
    """
    Perform comprehensive validation of configuration.

    Args:
        config: Configuration object to validate

    Raises:
        UnknownMetric: If a weight names an unrecognized metric
        ValueError: If any other validation check fails
    """
    layout = config.layout

    # Alphabet
    if not layout.alphabet:
        raise ValueError("alphabet cannot be empty")
    if len(set(layout.alphabet)) != len(layout.alphabet):
        duplicates = sorted(char for char in set(layout.alphabet) if layout.alphabet.count(char) > 1)
        raise ValueError(f"Duplicate characters in alphabet: {duplicates}")
    if len(layout.alphabet) < 2 and not layout.seed_layout:
        raise ValueError("Need at least 2 characters for meaningful optimization")

    # Chord pool must hold every character
    if not 1 <= layout.max_chord_keys <= 10:
        raise ValueError(f"max_chord_keys must be between 1 and 10, got {layout.max_chord_keys}")
    pool_size = len(iterate_chords(layout.max_chord_keys))
    if len(layout.alphabet) > pool_size:
        raise ValueError(
            f"Insufficient chords: {len(layout.alphabet)} characters but only "
            f"{pool_size} chords of up to {layout.max_chord_keys} keys")

    # Reference layouts
    if layout.seed_layout and layout.seed_layout not in REFERENCE_LAYOUTS:
        raise ValueError(f"Unknown seed_layout '{layout.seed_layout}'. Available: {list(REFERENCE_LAYOUTS)}")
    unknown_references = [name for name in config.output.references if name not in REFERENCE_LAYOUTS]
    if unknown_references:
        raise ValueError(f"Unknown reference layouts: {unknown_references}. Available: {list(REFERENCE_LAYOUTS)}")

    # Corpus source
    corpus = config.corpus
    if corpus.item_pair_frequency_file and not corpus.item_frequency_file:
        raise ValueError("item_pair_frequency_file requires item_frequency_file")

    # Weights (raises UnknownMetric, a ValueError)
    validate_weights(config.weights)
    if not any(config.weights.values()):
        raise ValueError("At least one metric weight must be non-zero")

    # Search
    search = config.search
    if search.iterations is not None and search.iterations < 0:
        raise ValueError("iterations cannot be negative")
    if search.time_limit is not None and search.time_limit < 0:
        raise ValueError("time_limit cannot be negative")
    if not (search.iterations or search.time_limit):
        raise ValueError("Either iterations or time_limit must be positive")
    if search.stagnation_limit is not None and search.stagnation_limit < 1:
        raise ValueError("stagnation_limit must be positive (or omitted)")
    if search.neighborhood not in NEIGHBORHOODS:
        raise ValueError(f"neighborhood must be one of {list(NEIGHBORHOODS)}, got '{search.neighborhood}'")
    if search.batch_size < 1:
        raise ValueError("batch_size must be positive")
    if not 0.0 <= search.relocate_rate <= 1.0:
        raise ValueError("relocate_rate must be between 0 and 1")
    if search.processes is not None and search.processes < 1:
        raise ValueError("processes must be positive")
    if search.n_solutions < 1:
        raise ValueError("n_solutions must be positive")

    # Acceptance
    acceptance = config.acceptance
    if acceptance.policy not in ACCEPTANCE_POLICIES:
        raise ValueError(f"policy must be one of {list(ACCEPTANCE_POLICIES)}, got '{acceptance.policy}'")
    if acceptance.initial_temperature <= 0:
        raise ValueError("initial_temperature must be positive")
    if not 0 < acceptance.cooling_rate <= 1:
        raise ValueError("cooling_rate must be in (0, 1]")
    if acceptance.min_temperature < 0:
        raise ValueError("min_temperature cannot be negative")

    # Logging
    if not isinstance(logging.getLevelName(config.logging.level.upper()), int):
        raise ValueError(f"Unknown logging level: {config.logging.level}")


def print_config_summary(config: Config) -> None:
    """Print human-readable configuration summary."""
    layout = config.layout
    search = config.search

    print(f"\nConfiguration Summary:")
    print(f"  Config file: {config._config_path}")
    print(f"  Alphabet ({len(layout.alphabet)}): {layout.alphabet!r}")
    print(f"  Chords of up to {layout.max_chord_keys} keys")
    if layout.seed_layout:
        print(f"  Seed layout: {layout.seed_layout}")

    if config.corpus.text_file:
        print(f"  Corpus text: {config.corpus.text_file}")
    if config.corpus.item_frequency_file:
        print(f"  Item frequencies: {config.corpus.item_frequency_file}")
    if config.corpus.item_pair_frequency_file:
        print(f"  Item-pair frequencies: {config.corpus.item_pair_frequency_file}")

    active = {name: weight for name, weight in config.weights.items() if weight}
    print(f"  Weights: {active}")
    print(f"  Search: iterations={search.iterations}, time_limit={search.time_limit}, "
          f"stagnation_limit={search.stagnation_limit}, neighborhood={search.neighborhood}, "
          f"batch_size={search.batch_size}, seed={search.seed}")
    print(f"  Acceptance: {config.acceptance.policy}")
    print(f"  Results folder: {config.output.results_folder} (save={config.output.save_results})")


def create_default_config(output_path: str = "config.yaml") -> None:
    """
    Create a default configuration file with common settings.

    Args:
        output_path: Path where to save the default config
    """
    default_config = {
        'corpus': {
            'text_file': 'input/sample_corpus.txt',
            'item_frequency_file': '',
            'item_pair_frequency_file': '',
        },
        'layout': {
            'alphabet': DEFAULT_ALPHABET,
            'max_chord_keys': 2,
            'seed_layout': '',
        },
        'weights': default_weights(),
        'search': {
            'iterations': 20000,
            'time_limit': None,
            'stagnation_limit': 2000,
            'neighborhood': 'random',
            'batch_size': 8,
            'relocate_rate': 0.1,
            'seed': 42,
            'processes': None,
            'n_solutions': 5,
            'show_progress_bar': True,
        },
        'acceptance': {
            'policy': 'simulated_annealing',
            'initial_temperature': 0.01,
            'cooling_rate': 0.9995,
            'min_temperature': 1e-5,
        },
        'output': {
            'results_folder': 'output/layouts',
            'save_results': True,
            'references': ['asetniop'],
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    }

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(default_config, f, default_flow_style=False, indent=2, sort_keys=False)

    print(f"Default configuration saved to: {output_path}")


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure the root logger from the logging section."""
    config = config or LoggingConfig()
    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format=config.format,
        force=True,
    )
