# -- SPH Run Diagnostics Plots -- #

'''
Plotly-based interactive plots of solver health over a run.

All functions take the history dict recorded by FrameExporter
(times, kinetic, potential, total, maxDensityError).
'''

from __future__ import annotations

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from FluidSim.visualization import theme


def plotEnergyHistory(history: dict[str, list[float]]) -> go.Figure:
    '''
    Kinetic, potential and total energy vs time.

    Parameters:
    -----------
    history : dict[str, list[float]]
        Exporter history

    Returns:
    --------
    go.Figure : Plotly figure
    '''
    times = history['times']

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=times, y=history['kinetic'],
        mode='lines', name='Kinetic',
        line=dict(color=theme.KINETIC),
    ))
    fig.add_trace(go.Scatter(
        x=times, y=history['potential'],
        mode='lines', name='Potential',
        line=dict(color=theme.POTENTIAL),
    ))
    fig.add_trace(go.Scatter(
        x=times, y=history['total'],
        mode='lines', name='Total',
        line=dict(color=theme.TOTAL, width=2),
    ))

    fig.update_layout(
        title='Energy History',
        xaxis_title='Time (s)',
        yaxis_title='Energy (J)',
        template=theme.TEMPLATE,
        height=400,
    )

    return fig


def plotDensityError(
    history: dict[str, list[float]],
    tolerance: float | None = None,
) -> go.Figure:
    '''
    Maximum relative density error vs time.

    Parameters:
    -----------
    history : dict[str, list[float]]
        Exporter history
    tolerance : float | None
        Optional reference line, as a fraction (0.01 = 1 %)

    Returns:
    --------
    go.Figure : Plotly figure
    '''
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=history['times'],
        y=[100.0 * e for e in history['maxDensityError']],
        mode='lines+markers', name='Max density error',
        line=dict(color=theme.DENSITY_ERROR),
    ))

    if tolerance is not None:
        fig.add_hline(
            y=100.0 * tolerance,
            line=dict(color=theme.TOLERANCE_LINE, dash='dash', width=1),
            annotation_text=f'{100.0 * tolerance:.1f} %',
        )

    fig.update_layout(
        title='Density Error',
        xaxis_title='Time (s)',
        yaxis_title='Max |rho - rho_0| / rho_0 (%)',
        template=theme.TEMPLATE,
        height=400,
    )

    return fig


def createDiagnosticsFigure(history: dict[str, list[float]]) -> go.Figure:
    '''
    Two-row dashboard: energy on top, density error below.

    Parameters:
    -----------
    history : dict[str, list[float]]
        Exporter history

    Returns:
    --------
    go.Figure : Plotly figure
    '''
    fig = make_subplots(
        rows=2, cols=1,
        shared_xaxes=True,
        subplot_titles=('Energy', 'Max Density Error (%)'),
        vertical_spacing=0.1,
    )

    for trace in plotEnergyHistory(history).data:
        fig.add_trace(trace, row=1, col=1)
    for trace in plotDensityError(history).data:
        fig.add_trace(trace, row=2, col=1)

    fig.update_xaxes(title_text='Time (s)', row=2, col=1)
    fig.update_layout(
        title='SPH Run Diagnostics',
        template=theme.TEMPLATE,
        height=700,
    )

    return fig
