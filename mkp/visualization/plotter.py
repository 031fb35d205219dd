"""
Plotting utilities for MKP runs.
Creates convergence plots from progress histories and GA statistics.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
from typing import List, Dict, Optional
from config import VIZ_CONFIG


class Plotter:
    """Creates convergence plots for MKP runs."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize plotter.

        Args:
            config: Visualization configuration
        """
        self.config = config or VIZ_CONFIG.copy()

        # Set up matplotlib and seaborn
        plt.style.use('default')
        sns.set_palette("husl")

        self.fig_size = self.config['figure_size']
        self.dpi = self.config['dpi']
        self.font_size = self.config['font_size']
        self.line_width = self.config.get('line_width', 2)

    def plot_convergence(self, history: List[Dict],
                         title: str = "Convergence",
                         best_known: Optional[float] = None,
                         save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot best value over iterations, one line per progress source.

        Args:
            history: Progress records (source, iteration, best_value, ...)
            title: Plot title
            best_known: Optional reference value drawn as a horizontal line
            save_path: Optional path to save plot

        Returns:
            Matplotlib figure
        """
        fig, ax = plt.subplots(figsize=self.fig_size)
        df = pd.DataFrame(history)

        if not df.empty:
            for source, group in df.groupby('source', sort=False):
                ax.plot(group['iteration'], group['best_value'],
                        linewidth=self.line_width, marker='.', label=str(source))
        if best_known is not None:
            ax.axhline(best_known, color='k', linestyle='--', linewidth=1, label='Best known')

        ax.set_xlabel('Iteration', fontsize=self.font_size)
        ax.set_ylabel('Best value', fontsize=self.font_size)
        ax.set_title(title, fontsize=self.font_size + 2, fontweight='bold')
        ax.grid(True, alpha=0.3)
        if ax.get_legend_handles_labels()[0]:
            ax.legend()
        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=self.dpi, bbox_inches='tight')

        return fig

    def plot_ga_statistics(self, evolution_data: List[Dict],
                           title: str = "GA Convergence",
                           save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot GA fitness and diversity over generations.

        Args:
            evolution_data: Per-generation statistics from GeneticAlgorithm.evolve
            title: Plot title
            save_path: Optional path to save plot

        Returns:
            Matplotlib figure
        """
        df = pd.DataFrame(evolution_data)
        fig, axes = plt.subplots(1, 2, figsize=(self.fig_size[0] * 1.5, self.fig_size[1]))

        if not df.empty:
            axes[0].plot(df['generation'], df['best_fitness'], 'b-', linewidth=self.line_width, label='Best Fitness')
            axes[0].plot(df['generation'], df['avg_fitness'], 'g-', linewidth=self.line_width, label='Average Fitness')
            axes[0].legend()
            axes[1].plot(df['generation'], df['diversity'], 'm-', linewidth=self.line_width, label='Population Diversity')
            axes[1].legend()

        axes[0].set_xlabel('Generation', fontsize=self.font_size)
        axes[0].set_ylabel('Fitness', fontsize=self.font_size)
        axes[0].set_title('Fitness Evolution', fontsize=self.font_size)
        axes[0].grid(True, alpha=0.3)

        axes[1].set_xlabel('Generation', fontsize=self.font_size)
        axes[1].set_ylabel('Diversity', fontsize=self.font_size)
        axes[1].set_title('Population Diversity', fontsize=self.font_size)
        axes[1].grid(True, alpha=0.3)

        fig.suptitle(title, fontsize=self.font_size + 2, fontweight='bold')
        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=self.dpi, bbox_inches='tight')

        return fig
