"""
Module for drawing unfolding maps and diagnostic plots.
"""
import numpy as np
import pandas as pd
import matplotlib as mpl
from matplotlib import pyplot as plt
from matplotlib.ticker import FuncFormatter
from scipy.spatial.distance import cdist
from scipy.stats import spearmanr
from cycler import cycler

DEFAULT_BUBBLE_SIZE = 50
DEFAULT_FONT_SIZE = 12

title_fontdict = {'size': 18}
text_fontdict = {'size': DEFAULT_FONT_SIZE}
axis_label_fontdict = {'size': 12}

def init_params(custom_params=None):
    """
    Initialize plot aesthetics.
    """
    base_style = {
        "axes.prop_cycle": cycler('color', ["#1f77b4", "#ff7f0e", "#2ca02c", "#d62728",
                                            "#9467bd", "#8c564b", "#e377c2", "#7f7f7f",
                                            "#bcbd22", "#17becf"]),
        "axes.linewidth": 1,
        "axes.titlesize": 22,
        "axes.labelsize": 16,
        "axes.edgecolor": "black",
        "xtick.labelsize": 12,
        "ytick.labelsize": 12,
        "axes.grid": False,
        "grid.alpha": 0.3,
        "grid.linewidth": 0.5,
        "grid.linestyle": "--",
        "grid.color": "black",
        "savefig.facecolor": "w",
        "savefig.transparent": False,
        "savefig.bbox": "tight",
        "savefig.format": "png"
    }

    if custom_params:
        base_style.update(custom_params)

    mpl.rcParams.update(base_style)

def style_axes(ax, show_axes=True, show_box=True, show_grid=False, axes_at_origin=False):
    ax.xaxis.set_visible(show_axes)
    ax.yaxis.set_visible(show_axes)

    ax.grid(show_grid and show_axes)

    if show_box:
        for spine in ax.spines.values():
            spine.set_visible(True)
    else:
        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)
        ax.spines['left'].set_visible(show_axes)
        ax.spines['bottom'].set_visible(show_axes)

    if axes_at_origin and show_axes:
        ax.spines['left'].set_position('zero')
        ax.spines['bottom'].set_position('zero')
        ax.spines['right'].set_visible(False)
        ax.spines['top'].set_visible(False)

    if show_axes:
        ax.set_xlabel("Dimension 1", fontdict=axis_label_fontdict)
        ax.set_ylabel("Dimension 2", fontdict=axis_label_fontdict)

    ax.tick_params(axis='x', which='both', bottom=show_axes, labelbottom=show_axes)
    ax.tick_params(axis='y', which='both', left=show_axes, labelleft=show_axes)
    ax.xaxis.set_major_formatter(FuncFormatter(lambda x, _: '{:.1f}'.format(x)))
    ax.yaxis.set_major_formatter(FuncFormatter(lambda y, _: '{:.1f}'.format(y)))
    ax.set_aspect('equal', adjustable='datalim')
    ax.autoscale_view()

def _as_map_frame(Z, label, size, kind):
    Z = np.atleast_2d(np.asarray(Z, dtype=float))
    if Z.shape[1] == 1:
        Z = np.hstack([Z, np.zeros_like(Z)])
    df = pd.DataFrame(Z[:, :2], columns=['x', 'y'])
    df['kind'] = kind
    df['label'] = label if label is not None else None
    df['size'] = size if size is not None else DEFAULT_BUBBLE_SIZE
    return df

def draw_map(X, Y, row_labels=None, col_labels=None, row_size=None, col_size=None,
             show_box=True, show_grid=False, show_axes=True, axes_at_origin=False, show_legend=True,
             row_color="#1f77b4", col_color="#d62728", filename=None, ax=None, fig_size=None,
             title=None, scatter_kws={}, fontdict=None, rcparams=None):
    """
    Plot a joint map of both sets of an unfolding solution.

    Row objects are drawn as circles, column objects as triangles.

    Parameters
    ----------
    X : array-like of shape (n_rows, n_dims)
        Row configuration. Only the first two dimensions are drawn.
    Y : array-like of shape (n_cols, n_dims)
        Column configuration.
    row_labels, col_labels : array-like, optional
        Labels for each row / column object.
    row_size, col_size : array-like or float, optional
        Bubble sizes of row / column objects.
    show_box : bool, optional
        If True, show a box around the plot. Default is True.
    show_grid : bool, optional
        If True, show grid lines on the plot. Default is False.
    show_axes : bool, optional
        If True, show the axes of the plot. Default is True.
    axes_at_origin : bool, optional
        If True, draw axes lines through the origin. Default is False.
    show_legend : bool, optional
        If True, display a legend for the two sets. Default is True.
    row_color, col_color : str, optional
        Colors of row and column objects.
    filename : str, optional
        Path to save the figure file. If None, the figure is not saved.
    ax : matplotlib.axes.Axes, optional
        Pre-existing axes for the plot. If None, a new figure and axes are created.
    fig_size : tuple, optional
        Size of the figure to create. Ignored if `ax` is not None.
    title : str, optional
        Title of the plot.
    scatter_kws : dict, optional
        Additional keyword arguments to pass to the scatter plot function.
    fontdict : dict, optional
        Font dictionary for the labels.
    rcparams : dict, optional
        Dictionary to update matplotlib's rcParams for customizing plots.

    Returns
    -------
    matplotlib.figure.Figure
        Only if `ax` is None, the figure containing the plot is returned.
    """
    df_data = pd.concat([
        _as_map_frame(X, row_labels, row_size, 'row'),
        _as_map_frame(Y, col_labels, col_size, 'col')], ignore_index=True)

    init_params(rcparams)

    if ax is None:
        fig, ax = plt.subplots(figsize=fig_size or (6,6))
        return_fig = True
    else:
        fig = None
        return_fig = False

    for kind, marker, color, name in [('row', 'o', row_color, 'Rows'), ('col', '^', col_color, 'Columns')]:
        df_kind = df_data[df_data['kind'] == kind]
        scatter_args = {'edgecolors': 'black', 'alpha': 0.75, 'marker': marker}
        scatter_args.update(scatter_kws)
        ax.scatter(df_kind['x'], df_kind['y'], c=color, s=df_kind['size'], label=name, **scatter_args)

    for _, row in df_data.iterrows():
        if row['label'] is not None:
            ax.text(row['x'], row['y'], row['label'], fontdict=fontdict or text_fontdict)

    style_axes(ax, show_axes, show_box, show_grid, axes_at_origin)

    if title:
        ax.set_title(title, fontdict=title_fontdict)

    if show_legend:
        ax.legend()

    if filename:
        plt.savefig(filename, dpi=300, format='png', bbox_inches='tight')

    if return_fig:
        return fig

def draw_shepard_diagram(X, Y, D, weights=None, ax=None, show_grid=False, show_rank_correlation=True):
    """
    Draw a Shepard diagram of input dissimilarities vs map distances.

    The fitted line is the least-squares ratio transformation of the
    dissimilarities. Cells with zero weight are left out.

    Parameters
    ----------
    X : ndarray of shape (n_rows, n_dims)
        Row configuration.
    Y : ndarray of shape (n_cols, n_dims)
        Column configuration.
    D : ndarray of shape (n_rows, n_cols)
        Input dissimilarities.
    weights : ndarray of shape (n_rows, n_cols), optional
        Nonnegative weights, by default None.
    ax : matplotlib.axes.Axes, optional
        Axes object to draw the diagram on.
    show_grid : bool, optional
        Whether to show grid lines on the plot.
    show_rank_correlation : bool, optional
        Whether to display the rank correlation coefficient.

    Returns
    -------
    matplotlib.axes.Axes
    """
    D = np.asarray(D, dtype=float)
    distances = cdist(X, Y, metric='euclidean')
    observed = np.ones(D.shape, dtype=bool) if weights is None else np.asarray(weights) > 0

    df = pd.DataFrame({
        'Dissimilarities': D[observed],
        'Distances': distances[observed],
    }).sort_values('Dissimilarities')

    ssq = np.sum(df['Dissimilarities']**2)
    slope = np.sum(df['Dissimilarities'] * df['Distances']) / ssq if ssq > 0 else 0.0
    df['Fitted Distances'] = slope * df['Dissimilarities']

    if ax is None:
        fig, ax = plt.subplots(figsize=(6,6))

    ax.scatter(df['Dissimilarities'], df['Distances'], color="darkblue", label="Original", alpha=0.6)
    ax.plot(df['Dissimilarities'], df['Fitted Distances'], color="orange", label="Fitted", linestyle='-')

    ax.set_xlabel('Input Dissimilarity', fontdict=axis_label_fontdict)
    ax.set_ylabel('Map Distance', fontdict=axis_label_fontdict)
    ax.legend()

    if show_grid:
        ax.grid(True)

    if show_rank_correlation:
        rank_corr = spearmanr(df['Dissimilarities'], df['Distances'])[0]
        ax.text(0.5, -0.15, f'Rank Correlation: {rank_corr:.2f}', transform=ax.transAxes,
                ha='center', fontsize=14)

    ax.set_ylim(0, df['Distances'].max() * 1.15)

    ax.xaxis.set_major_formatter(FuncFormatter(lambda x, _: f'{x:.2f}'))
    ax.yaxis.set_major_formatter(FuncFormatter(lambda y, _: f'{y:.2f}'))

    return ax
