"""
Main application entry point for the MKP heuristic solver.
Provides CLI interface for benchmark instances and generated data.
"""

import argparse
import logging
import os
import sys
from typing import Dict, List

import numpy as np

from mkp.data_processing.loader import MKPInstanceLoader
from mkp.data_processing.generator import MKPInstanceGenerator
from mkp.algorithms.solver import solve, SolveResult
from mkp.evaluation.validator import SolutionValidator
from mkp.evaluation.result_exporter import ResultExporter
from mkp.core.logger import setup_logger, level_from_verbosity
from mkp.core.pipeline_profiler import pipeline_profiler
from mkp.core.deadline import Deadline
from mkp.core.exceptions import InvalidConfigurationError, MKPException
from mkp.core.validators import METHODS, LS_MODES, EVALUATORS, LOSS_VARIANTS, FREEZE_STRATEGIES, FITNESS_POLICIES
from config import GENERATOR_CONFIG, PATHS, PRESETS, RUN_CONFIG, build_config


def main(argv: List[str] = None) -> int:
    """Main application entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        level = level_from_verbosity(args.verbosity)
    except MKPException as e:
        parser.error(str(e))
    logger = setup_logger('mkp', level=level, log_dir=PATHS['logs'], to_file=not args.no_log_file)
    logger.info("=" * 60)
    logger.info("MKP Solver Starting")
    logger.info("=" * 60)

    try:
        config = build_config(args.preset, collect_overrides(args))
        problems = load_problems(args, config)
        if not problems:
            parser.print_help()
            return 1

        for problem in problems:
            run_optimization(problem, args, config)

    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        print("\nOperation cancelled by user.")
        return 1
    except MKPException as e:
        logger.error(f"MKP Error: {e}", exc_info=True)
        print(f"Error: {e}")
        return 1

    return 0


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description="MKP Solver: Multidimensional Knapsack heuristics (LS, VND, VNS, GD, GA)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Solve an instance with VNS (default)
  python main.py data/instances/mknap1.txt

  # Gradient solver followed by VNS restarts, 30 seconds
  python main.py data/instances/mknap1.txt --method MULTI-GD-VNS --max-time 30 --num-starts 10

  # Genetic algorithm with custom parameters
  python main.py data/instances/mknap1.txt --method GA --population 200 --generations 1000

  # Generate and solve a random instance
  python main.py --generate --items 250 --constraints 10 --tightness 0.25

  # Fast preset, first-improvement local search
  python main.py data/instances/mknap1.txt --preset fast --ls-mode first
        """
    )

    # Data source options
    parser.add_argument('instances', nargs='*',
                        help='Instance files (text token format or .json)')
    parser.add_argument('--generate', action='store_true',
                        help='Generate a random instance instead of loading one')
    parser.add_argument('--items', type=int, default=GENERATOR_CONFIG['n_items'],
                        help=f"Items of the generated instance (default: {GENERATOR_CONFIG['n_items']})")
    parser.add_argument('--constraints', type=int, default=GENERATOR_CONFIG['n_constraints'],
                        help=f"Constraints of the generated instance (default: {GENERATOR_CONFIG['n_constraints']})")
    parser.add_argument('--tightness', type=float, default=GENERATOR_CONFIG['tightness'],
                        help=f"Capacity tightness of the generated instance (default: {GENERATOR_CONFIG['tightness']})")
    parser.add_argument('--save-instance', type=str,
                        help='Write the generated instance to this path')

    # Run options
    parser.add_argument('--method', type=str.upper, choices=METHODS,
                        help=f"Search method (default: {RUN_CONFIG['method']})")
    parser.add_argument('--preset', type=str, choices=list(PRESETS),
                        help='Parameter preset applied before the options below')
    parser.add_argument('--evaluator', type=str.lower, choices=EVALUATORS,
                        help='Evaluation backend (gpu falls back to cpu)')
    parser.add_argument('--max-time', type=float,
                        help=f"Wall-clock budget in seconds (default: {RUN_CONFIG['max_time']})")
    parser.add_argument('--num-starts', type=int,
                        help='Restarts of MULTI-GD-VNS')
    parser.add_argument('--initial', type=str, choices=['greedy', 'empty', 'random'],
                        help='Starting solution of LS, VND and VNS')
    parser.add_argument('--seed', type=int,
                        help=f"Random seed for reproducibility (default: {RUN_CONFIG['seed']})")

    # Local search / VND / VNS parameters
    parser.add_argument('--ls-k', type=int,
                        help='Top-k candidates explored by the neighborhoods')
    parser.add_argument('--ls-mode', type=str, choices=LS_MODES,
                        help='First or best improvement')
    parser.add_argument('--max-no-improvement', type=int,
                        help='Non-improving iterations before stopping (VND, VNS, GD, MULTI-GD-VNS)')
    parser.add_argument('--k-max', type=int,
                        help='Largest VNS shake radius')

    # Gradient solver parameters
    parser.add_argument('--lambda', dest='lam', type=float,
                        help='Overflow penalty coefficient')
    parser.add_argument('--learning-rate', type=float,
                        help='Gradient step size')
    parser.add_argument('--loss', type=str, choices=LOSS_VARIANTS,
                        help='Overflow penalty variant')
    parser.add_argument('--freeze', type=str, choices=FREEZE_STRATEGIES,
                        help='Variable freezing strategy')

    # GA parameters
    parser.add_argument('--population', type=int,
                        help='Population size')
    parser.add_argument('--generations', type=int,
                        help='Number of GA generations')
    parser.add_argument('--mutation-rate', type=float,
                        help='Per-gene mutation probability')
    parser.add_argument('--elite-fraction', type=float,
                        help='Fraction of the population kept as elite')
    parser.add_argument('--tournament-size', type=int,
                        help='Tournament size')
    parser.add_argument('--fitness-policy', type=str, choices=FITNESS_POLICIES,
                        help='Fitness of infeasible individuals')

    # Output options
    parser.add_argument('--output', type=str, default=PATHS['results'],
                        help='Output directory (default: results)')
    parser.add_argument('--no-plots', action='store_true',
                        help='Skip generating plots')
    parser.add_argument('--require-feasible', action='store_true',
                        help='Fail instead of exporting an infeasible solution')
    parser.add_argument('--verbosity', type=str.upper, default=RUN_CONFIG['verbosity'],
                        help='NONE | INFO | DEBUG')
    parser.add_argument('--no-log-file', action='store_true',
                        help='Log to the console only')

    return parser


def collect_overrides(args) -> Dict[str, Dict]:
    """Map CLI options onto configuration sections (None means keep default)."""
    overrides = {
        'run': {
            'method': args.method,
            'evaluator': args.evaluator,
            'max_time': args.max_time,
            'num_starts': args.num_starts,
            'initial_solution': args.initial,
            'seed': args.seed,
            'verbosity': args.verbosity,
        },
        'ls': {'ls_k': args.ls_k, 'ls_mode': args.ls_mode},
        'vns': {'k_max': args.k_max},
        'gd': {
            'lambda': args.lam,
            'learning_rate': args.learning_rate,
            'loss': args.loss,
            'freeze_strategy': args.freeze,
        },
        'ga': {
            'population_size': args.population,
            'generations': args.generations,
            'mutation_rate': args.mutation_rate,
            'elite_fraction': args.elite_fraction,
            'tournament_size': args.tournament_size,
            'fitness_policy': args.fitness_policy,
        },
    }

    if args.max_no_improvement is not None:
        method = (args.method or RUN_CONFIG['method']).upper()
        if method == 'VND':
            overrides['vnd'] = {'max_no_improvement': args.max_no_improvement}
        elif method == 'VNS':
            overrides['vns']['max_no_improvement'] = args.max_no_improvement
        elif method == 'GD':
            overrides['gd']['max_no_improvement'] = args.max_no_improvement
        elif method == 'MULTI-GD-VNS':
            overrides['gd']['max_no_improvement'] = args.max_no_improvement
            overrides['vns']['max_no_improvement'] = args.max_no_improvement
        else:
            # LS-FLIP, LS-SWAP and GA stop on their own criteria
            raise InvalidConfigurationError(
                parameter='max_no_improvement',
                value=args.max_no_improvement,
                expected=f"not set for {method} (used by VND | VNS | GD | MULTI-GD-VNS)"
            )

    return overrides


def load_problems(args, config: Dict):
    """Load the instances named on the command line or generate one."""
    loader = MKPInstanceLoader()
    if args.generate:
        generator_config = GENERATOR_CONFIG.copy()
        generator_config.update({
            'n_items': args.items,
            'n_constraints': args.constraints,
            'tightness': args.tightness,
            'seed': config['run']['seed'],
        })
        problem = MKPInstanceGenerator(generator_config).generate_problem()
        if args.save_instance:
            loader.save_to_file(problem, args.save_instance)
        return [problem]

    return [loader.load_from_file(path) for path in args.instances]


def plot_results(problem, result: SolveResult, evolution_data, output_dir: str, timestamp: str):
    """Save the convergence plot, plus the GA statistics plot for GA runs."""
    from mkp.visualization.plotter import Plotter
    import matplotlib.pyplot as plt

    logger = logging.getLogger("mkp.optimization")
    plotter = Plotter()

    if result.history:
        plot_path = os.path.join(output_dir, f"{problem.name}_convergence_{timestamp}.png")
        fig = plotter.plot_convergence(result.history, title=f"{result.method} on {problem.name}",
                                       best_known=problem.best_known, save_path=plot_path)
        plt.close(fig)
        logger.info(f"Convergence plot saved to: {plot_path}")

    if evolution_data:
        plot_path = os.path.join(output_dir, f"{problem.name}_ga_statistics_{timestamp}.png")
        fig = plotter.plot_ga_statistics(evolution_data, title=f"GA on {problem.name}",
                                         save_path=plot_path)
        plt.close(fig)
        logger.info(f"GA statistics plot saved to: {plot_path}")


def run_optimization(problem, args, config: Dict) -> SolveResult:
    """Run the optimization process for one instance."""
    logger = logging.getLogger("mkp.optimization")
    run = config['run']
    pipeline_profiler.reset()
    pipeline_profiler.set_context(instance=problem.name, method=run['method'])

    logger.info(f"Instance: {problem.name} (n={problem.n}, m={problem.m})")
    logger.info(f"Method: {run['method']}, evaluator={run['evaluator']}, "
                f"max_time={run['max_time']}s, seed={run['seed']}")

    result = solve(
        problem,
        config=config,
        deadline=Deadline(run['max_time']),
        rng=np.random.default_rng(run['seed'])
    )
    solution = result.solution
    evolution_data = result.statistics.pop('evolution_data', None)

    validation = SolutionValidator(problem).validate_solution(solution)
    for error in validation['errors']:
        logger.error(f"Validation: {error}")
    for warning in validation['warnings']:
        logger.warning(f"Validation: {warning}")

    os.makedirs(args.output, exist_ok=True)
    exporter = ResultExporter(args.output)
    exporter.save_solution(solution, problem, require_feasible=args.require_feasible)
    exporter.export_summary(problem, solution, result.method, result.elapsed,
                            statistics=result.statistics, config=config, validation=validation)
    exporter.export_convergence(result.history)
    if evolution_data is not None:
        exporter.export_evolution_data(evolution_data)

    if not args.no_plots:
        plot_results(problem, result, evolution_data, args.output, exporter.timestamp)

    logger.debug(pipeline_profiler.format_summary(top_n=10))

    print(f"\n{problem.name}: {result.method} value={solution.value:.0f} "
          f"feasible={solution.feasible} selected={solution.selected_count()} "
          f"time={result.elapsed:.2f}s")
    if validation.get('gap') is not None:
        print(f"Gap to best known: {validation['gap']:.3f}%")

    return result


if __name__ == "__main__":
    sys.exit(main())
