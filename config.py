# Configuration parameters for the MKP heuristic solver
# Defaults follow the values used when tuning on the OR-Library mknapcb sets

# Run-level configuration (shared by every method)
RUN_CONFIG = {
    'method': 'VNS',             # LS-FLIP | LS-SWAP | VND | VNS | GD | GA | MULTI-GD-VNS
    'evaluator': 'cpu',          # cpu | gpu (gpu falls back to cpu when no device is present)
    'max_time': 60.0,            # Wall-clock budget in seconds
    'num_starts': 5,             # Restarts of the MULTI-GD-VNS driver
    'seed': 42,                  # Single seed for the whole run
    'verbosity': 'INFO',         # NONE | INFO | DEBUG
    'initial_solution': 'greedy',  # greedy | empty | random (LS, VND and VNS start point)
}

# Local search configuration (Flip and Swap neighborhoods)
LS_CONFIG = {
    'ls_k': 100,                 # Explore only the top-k items of the candidate order
    'ls_mode': 'best',           # first | best improvement
}

# Variable Neighborhood Descent
VND_CONFIG = {
    'max_no_improvement': 3,     # Consecutive non-improving descent rounds before stopping
}

# Variable Neighborhood Search
VNS_CONFIG = {
    'max_no_improvement': 10,    # Consecutive non-improving outer iterations before stopping
    'k_max': 5,                  # Largest shake radius
    'inner_max_no_improvement': 5,  # VND budget applied to every shaken candidate
}

# Gradient relaxation solver
GD_CONFIG = {
    'lambda': 1.0,               # Penalty coefficient on capacity overflow
    'learning_rate': 0.1,
    'momentum': 0.95,            # EMA coefficient of the velocity
    'max_no_improvement': 50,    # Consecutive non-decreasing loss values before stopping
    'max_iterations': 5000,
    'sigmoid_clamp': 10.0,       # |theta| clamp inside the sigmoid
    'init_scale': 1.0,           # theta ~ U[0, init_scale)
    'loss': 'hinge',             # hinge | quadratic overflow penalty
    'freeze_strategy': 'highest',  # highest | confidence | none
    'warmup_iterations': 10,
    'freeze_interval': 1,        # Iterations between two 'highest' freezes
    'confidence_threshold': 0.95,
    'freeze_patience': 5,        # Consecutive confident iterations before a 'confidence' freeze
    'polish': True,              # One Flip local search pass after rounding
    'log_interval': 100,
}

# Genetic Algorithm
GA_CONFIG = {
    'population_size': 100,
    'generations': 500,
    'mutation_rate': 0.01,       # Per-gene flip probability
    'elite_fraction': 0.05,      # ceil(fraction * size) survivors, at least 1
    'tournament_size': 5,
    'fitness_policy': 'zero',    # zero | penalty (value - penalty_factor * overflow)
    'penalty_factor': 1.0,
    'repair_initial_population': True,
    'log_interval': 50,
}

# Presets applied on top of the defaults, section by section
PRESETS = {
    'fast': {
        'run': {'max_time': 10.0, 'num_starts': 2},
        'ls': {'ls_k': 50, 'ls_mode': 'first'},
        'vns': {'max_no_improvement': 5, 'k_max': 3},
        'gd': {'max_iterations': 1000},
        'ga': {'population_size': 50, 'generations': 200},
    },
    'standard': {
        'run': {'max_time': 60.0, 'num_starts': 5},
        'ls': {'ls_k': 100, 'ls_mode': 'best'},
        'vns': {'max_no_improvement': 10, 'k_max': 5},
        'gd': {'max_iterations': 5000},
        'ga': {'population_size': 100, 'generations': 500},
    },
    'intensive': {
        'run': {'max_time': 300.0, 'num_starts': 20},
        'ls': {'ls_k': 250, 'ls_mode': 'best'},
        'vns': {'max_no_improvement': 30, 'k_max': 10},
        'gd': {'max_iterations': 20000},
        'ga': {'population_size': 200, 'generations': 2000},
    },
}

# Random instance generation (Chu & Beasley style correlated instances)
GENERATOR_CONFIG = {
    'n_items': 100,
    'n_constraints': 5,
    'tightness': 0.5,            # capacity_i = tightness * sum_j weight[i][j]
    'weight_min': 1,
    'weight_max': 1000,
    'profit_noise': 500,         # profit_j = sum_i weight[i][j] / m + U(0, noise)
    'seed': 42,
}

# Visualization Configuration
VIZ_CONFIG = {
    'figure_size': (12, 8),
    'dpi': 150,
    'line_width': 2,
    'font_size': 12
}

# File Paths
PATHS = {
    'results': 'results/',
    'logs': 'logs/',
}


SECTIONS = {
    'run': RUN_CONFIG,
    'ls': LS_CONFIG,
    'vnd': VND_CONFIG,
    'vns': VNS_CONFIG,
    'gd': GD_CONFIG,
    'ga': GA_CONFIG,
}


def build_config(preset: str = None, overrides: dict = None) -> dict:
    """
    Build the sectioned run configuration.

    Args:
        preset: Optional preset name from PRESETS
        overrides: {section: {key: value}} taking precedence over defaults
            and preset; None values are ignored

    Returns:
        Dictionary of section name -> parameter dictionary (fresh copies)
    """
    config = {name: section.copy() for name, section in SECTIONS.items()}

    layers = []
    if preset:
        if preset not in PRESETS:
            from mkp.core.exceptions import InvalidConfigurationError
            raise InvalidConfigurationError(
                parameter='preset',
                value=preset,
                expected=' | '.join(PRESETS)
            )
        layers.append(PRESETS[preset])
    if overrides:
        layers.append(overrides)

    for layer in layers:
        for name, values in layer.items():
            if name not in config:
                from mkp.core.exceptions import InvalidConfigurationError
                raise InvalidConfigurationError(
                    parameter='section',
                    value=name,
                    expected=' | '.join(SECTIONS)
                )
            config[name].update({key: value for key, value in values.items() if value is not None})

    return config
