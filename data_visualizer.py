import plotly.graph_objects as go
import pandas as pd
from typing import List, Sequence

from models import ShipmentRecord


def records_frame(records: Sequence[ShipmentRecord]) -> pd.DataFrame:
    """Flatten records into the columns the progress charts group on"""
    return pd.DataFrame(
        [
            {
                'Courier': r.courier_partner,
                'Return Type': r.return_type.value,
                'Status': r.status.value,
            }
            for r in records
        ],
        columns=['Courier', 'Return Type', 'Status'],
    )


class VisualizationManager:
    """Create interactive progress visualizations for a verification session"""

    def __init__(self):
        self.colors = {
            'primary_blue': '#1F497D',
            'primary_orange': '#7EA1C4',
            'light_blue': '#4E75A0',
            'light_orange': '#B3C9DC',
            'gray': '#8E8E93',
            'light_gray': '#F2F2F7',
            'pending_red': '#D9534F',
            'white': '#FFFFFF'
        }

        self.status_colors = {
            'Done': self.colors['primary_blue'],
            'Pending': self.colors['pending_red'],
        }

    def create_status_donut(self, records: Sequence[ShipmentRecord]) -> go.Figure:
        """Donut of received vs pending shipments"""
        df = records_frame(records)
        if df.empty:
            return self._create_empty_chart("No shipments loaded")

        counts = df['Status'].value_counts()
        labels: List[str] = [label for label in ['Done', 'Pending'] if label in counts.index]

        fig = go.Figure(data=[
            go.Pie(
                labels=labels,
                values=[int(counts[label]) for label in labels],
                hole=0.5,
                marker_colors=[self.status_colors[label] for label in labels],
                textinfo='label+value',
                hovertemplate='<b>%{label}</b><br>' +
                             'Shipments: %{value}<br>' +
                             'Share: %{percent}<br>' +
                             '<extra></extra>'
            )
        ])

        fig.update_layout(
            title={
                'text': 'Verification Progress',
                'x': 0.0,
                'font': {'size': 16, 'color': self.colors['primary_blue']}
            },
            font={'size': 12},
            height=350,
            margin=dict(l=20, r=20, t=60, b=20)
        )

        return fig

    def create_courier_progress_chart(self, records: Sequence[ShipmentRecord]) -> go.Figure:
        """Stacked bars of done/pending shipments per courier"""
        return self._create_progress_bars(records, 'Courier', 'Progress by Courier')

    def create_return_type_chart(self, records: Sequence[ShipmentRecord]) -> go.Figure:
        """Stacked bars of done/pending shipments per return type"""
        return self._create_progress_bars(records, 'Return Type', 'Progress by Return Type')

    def _create_progress_bars(self, records: Sequence[ShipmentRecord], group: str, title: str) -> go.Figure:
        df = records_frame(records)
        if df.empty:
            return self._create_empty_chart("No shipments loaded")

        summary = df.groupby([group, 'Status']).size().unstack(fill_value=0)
        for status in ['Done', 'Pending']:
            if status not in summary.columns:
                summary[status] = 0
        summary = summary.sort_values('Pending', ascending=True)

        fig = go.Figure()
        for status in ['Done', 'Pending']:
            fig.add_trace(go.Bar(
                x=summary[status],
                y=summary.index,
                name=status,
                orientation='h',
                marker_color=self.status_colors[status],
                hovertemplate='<b>%{y}</b><br>' +
                             status + ': %{x}<br>' +
                             '<extra></extra>'
            ))

        fig.update_layout(
            title={
                'text': title,
                'x': 0.0,
                'font': {'size': 16, 'color': self.colors['primary_blue']}
            },
            xaxis_title='Shipments',
            font={'size': 12},
            barmode='stack',
            height=max(300, 40 * len(summary) + 120),
            margin=dict(l=150, r=50, t=50, b=50)
        )

        return fig

    def _create_empty_chart(self, message: str) -> go.Figure:
        """Create empty chart with message"""
        fig = go.Figure()

        fig.add_annotation(
            text=message,
            xref="paper",
            yref="paper",
            x=0.5,
            y=0.5,
            xanchor="center",
            yanchor="middle",
            font=dict(size=16, color=self.colors['gray']),
            showarrow=False
        )

        fig.update_layout(
            height=400,
            showlegend=False,
            xaxis={'visible': False},
            yaxis={'visible': False},
            margin=dict(l=50, r=50, t=50, b=50)
        )

        return fig
