"""
Validation layer for the MKP solver.
Provides validators for configuration sections.
"""

from typing import Dict
from mkp.core.exceptions import InvalidConfigurationError


METHODS = ('LS-FLIP', 'LS-SWAP', 'VND', 'VNS', 'GD', 'GA', 'MULTI-GD-VNS')
LS_MODES = ('first', 'best')
EVALUATORS = ('cpu', 'gpu')
INITIAL_SOLUTIONS = ('greedy', 'empty', 'random')
LOSS_VARIANTS = ('hinge', 'quadratic')
FREEZE_STRATEGIES = ('highest', 'confidence', 'none')
FITNESS_POLICIES = ('zero', 'penalty')


def _require(config: Dict, keys):
    for key in keys:
        if key not in config:
            raise InvalidConfigurationError(
                parameter=key,
                value=None,
                expected="Required parameter"
            )


def _check_choice(config: Dict, key: str, choices):
    if config[key] not in choices:
        raise InvalidConfigurationError(
            parameter=key,
            value=config[key],
            expected=' | '.join(choices)
        )


def _check_min(config: Dict, key: str, minimum):
    if config[key] < minimum:
        raise InvalidConfigurationError(
            parameter=key,
            value=config[key],
            expected=f">= {minimum}"
        )


def _check_unit_interval(config: Dict, key: str):
    if not 0 <= config[key] <= 1:
        raise InvalidConfigurationError(
            parameter=key,
            value=config[key],
            expected="[0, 1]"
        )


class ConfigValidator:
    """Validate configuration sections."""

    @staticmethod
    def validate_run_config(config: Dict) -> bool:
        """
        Validate run-level configuration.

        Args:
            config: Run configuration dictionary

        Returns:
            True if valid, raises InvalidConfigurationError otherwise

        Raises:
            InvalidConfigurationError: If configuration is invalid
        """
        _require(config, ['method', 'evaluator', 'max_time', 'num_starts', 'initial_solution'])

        if str(config['method']).upper() not in METHODS:
            raise InvalidConfigurationError(
                parameter='method',
                value=config['method'],
                expected=' | '.join(METHODS)
            )
        _check_choice(config, 'evaluator', EVALUATORS)
        _check_choice(config, 'initial_solution', INITIAL_SOLUTIONS)

        if config['max_time'] is not None and config['max_time'] <= 0:
            raise InvalidConfigurationError(
                parameter='max_time',
                value=config['max_time'],
                expected="> 0 seconds or None"
            )
        _check_min(config, 'num_starts', 1)

        return True

    @staticmethod
    def validate_ls_config(config: Dict) -> bool:
        """Validate local search configuration."""
        _require(config, ['ls_k', 'ls_mode'])
        _check_min(config, 'ls_k', 1)
        _check_choice(config, 'ls_mode', LS_MODES)
        return True

    @staticmethod
    def validate_vnd_config(config: Dict) -> bool:
        """Validate VND configuration."""
        _require(config, ['max_no_improvement'])
        _check_min(config, 'max_no_improvement', 1)
        return True

    @staticmethod
    def validate_vns_config(config: Dict) -> bool:
        """Validate VNS configuration."""
        _require(config, ['max_no_improvement', 'k_max', 'inner_max_no_improvement'])
        _check_min(config, 'max_no_improvement', 1)
        _check_min(config, 'k_max', 0)
        _check_min(config, 'inner_max_no_improvement', 1)
        return True

    @staticmethod
    def validate_gd_config(config: Dict) -> bool:
        """
        Validate gradient relaxation configuration.

        Args:
            config: Gradient solver configuration dictionary

        Returns:
            True if valid, raises InvalidConfigurationError otherwise
        """
        _require(config, [
            'lambda', 'learning_rate', 'momentum', 'max_no_improvement',
            'max_iterations', 'sigmoid_clamp', 'loss', 'freeze_strategy'
        ])

        _check_min(config, 'lambda', 0)
        if config['learning_rate'] <= 0:
            raise InvalidConfigurationError(
                parameter='learning_rate',
                value=config['learning_rate'],
                expected="> 0"
            )
        if not 0 <= config['momentum'] < 1:
            raise InvalidConfigurationError(
                parameter='momentum',
                value=config['momentum'],
                expected="[0, 1)"
            )
        _check_min(config, 'max_no_improvement', 1)
        _check_min(config, 'max_iterations', 1)
        if config['sigmoid_clamp'] <= 0:
            raise InvalidConfigurationError(
                parameter='sigmoid_clamp',
                value=config['sigmoid_clamp'],
                expected="> 0"
            )
        _check_choice(config, 'loss', LOSS_VARIANTS)
        _check_choice(config, 'freeze_strategy', FREEZE_STRATEGIES)

        if config['freeze_strategy'] == 'confidence':
            threshold = config.get('confidence_threshold', 0.95)
            if not 0.5 < threshold < 1:
                raise InvalidConfigurationError(
                    parameter='confidence_threshold',
                    value=threshold,
                    expected="(0.5, 1)"
                )

        return True

    @staticmethod
    def validate_ga_config(config: Dict) -> bool:
        """
        Validate GA configuration.

        Args:
            config: GA configuration dictionary

        Returns:
            True if valid, raises InvalidConfigurationError otherwise

        Raises:
            InvalidConfigurationError: If configuration is invalid
        """
        _require(config, [
            'population_size', 'generations', 'mutation_rate',
            'elite_fraction', 'tournament_size', 'fitness_policy'
        ])

        _check_min(config, 'population_size', 1)
        if config['population_size'] > 10000:
            raise InvalidConfigurationError(
                parameter='population_size',
                value=config['population_size'],
                expected="<= 10000"
            )
        _check_min(config, 'generations', 1)
        _check_unit_interval(config, 'mutation_rate')
        _check_unit_interval(config, 'elite_fraction')
        _check_min(config, 'tournament_size', 2)
        _check_choice(config, 'fitness_policy', FITNESS_POLICIES)

        return True

    @classmethod
    def validate_all(cls, config: Dict) -> bool:
        """Validate every section of a sectioned configuration."""
        cls.validate_run_config(config['run'])
        cls.validate_ls_config(config['ls'])
        cls.validate_vnd_config(config['vnd'])
        cls.validate_vns_config(config['vns'])
        cls.validate_gd_config(config['gd'])
        cls.validate_ga_config(config['ga'])
        return True
