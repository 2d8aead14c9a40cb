"""
Visualization tools for kinematic chains using Plotly and Matplotlib.
"""

import logging
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from .context import KinematicsContext
from .debug_visuals import JointAxisVisual, compute_joint_axis_visual
from .joints import Joint, KinematicChain

logger = logging.getLogger(__name__)

FRAME_AXIS_COLORS = ('red', 'green', 'blue')


class ChainVisualizer:
    """Plots joint frames of a chain from the scene's world transforms."""

    def __init__(self, context: KinematicsContext, frame_scale: float = 0.05):
        """
        Initialize visualizer.

        Args:
            context: Kinematics context whose scene is plotted
            frame_scale: Length of the drawn frame axes in scene units
        """
        self.context = context
        self.frame_scale = frame_scale
        self.colors = {
            'link': 'blue',
            'root': 'green',
            'joint': 'orange',
            'limit': 'cyan',
        }

    def _chain_points(self, chain: KinematicChain) -> Tuple[np.ndarray, List[str], List[np.ndarray]]:
        """World positions of the root and every child node, in chain order."""
        names = [chain.root_node_id]
        frames = []
        root_T = self.context.get_world_transform(chain.root_node_id)
        frames.append(root_T if root_T is not None else np.eye(4))

        for joint_id in chain.joint_ids:
            joint = self.context.get_joint(joint_id)
            if joint is None:
                continue
            T = self.context.get_world_transform(joint.child_node_id)
            if T is None:
                continue
            names.append(joint.name)
            frames.append(T)

        points = np.array([T[:3, 3] for T in frames])
        return points, names, frames

    def _link_segments(self, chain: KinematicChain) -> List[Tuple[np.ndarray, np.ndarray]]:
        """Parent-to-child segments for every joint in the chain."""
        segments = []
        for joint_id in chain.joint_ids:
            joint = self.context.get_joint(joint_id)
            if joint is None:
                continue
            parent_T = self.context.get_world_transform(joint.parent_node_id)
            child_T = self.context.get_world_transform(joint.child_node_id)
            if parent_T is None or child_T is None:
                continue
            segments.append((parent_T[:3, 3], child_T[:3, 3]))
        return segments

    def plot_chain(self, chain: KinematicChain, save_path: Optional[str] = None,
                   show_frames: bool = True, show_axes: bool = True) -> go.Figure:
        """
        Plot a chain in 3D with Plotly.

        Args:
            chain: Chain to plot
            save_path: Optional HTML output path
            show_frames: Whether to draw each node's local frame
            show_axes: Whether to draw joint axis arrows and limit arcs

        Returns:
            Plotly figure
        """
        fig = go.Figure()
        points, names, frames = self._chain_points(chain)

        for start, end in self._link_segments(chain):
            fig.add_trace(go.Scatter3d(
                x=[start[0], end[0]], y=[start[1], end[1]], z=[start[2], end[2]],
                mode='lines',
                line=dict(color=self.colors['link'], width=6),
                showlegend=False
            ))

        fig.add_trace(go.Scatter3d(
            x=points[:, 0], y=points[:, 1], z=points[:, 2],
            mode='markers+text',
            marker=dict(size=5, color=self.colors['joint']),
            text=names,
            name='Nodes'
        ))
        fig.add_trace(go.Scatter3d(
            x=[points[0, 0]], y=[points[0, 1]], z=[points[0, 2]],
            mode='markers',
            marker=dict(size=9, color=self.colors['root'], symbol='square'),
            name='Root'
        ))

        if show_frames:
            self._add_frames(fig, frames)

        if show_axes:
            for joint_id in chain.joint_ids:
                visual = self._axis_visual(joint_id)
                if visual is None:
                    continue
                fig.add_trace(go.Scatter3d(
                    x=[visual.origin[0], visual.tip[0]],
                    y=[visual.origin[1], visual.tip[1]],
                    z=[visual.origin[2], visual.tip[2]],
                    mode='lines',
                    line=dict(color='yellow', width=4),
                    showlegend=False
                ))
                if visual.limit_arc is not None:
                    arc = visual.limit_arc
                    fig.add_trace(go.Scatter3d(
                        x=arc[:, 0], y=arc[:, 1], z=arc[:, 2],
                        mode='lines',
                        line=dict(color=self.colors['limit'], width=2),
                        opacity=0.5,
                        showlegend=False
                    ))

        fig.update_layout(
            title=f'Kinematic Chain: {chain.name} ({chain.dof} DOF)',
            scene=dict(
                xaxis_title='X (m)',
                yaxis_title='Y (m)',
                zaxis_title='Z (m)',
                aspectmode='data'
            ),
            width=800,
            height=600
        )

        if save_path:
            fig.write_html(save_path)
            logger.info(f"Chain plot saved to {save_path}")

        return fig

    def _axis_visual(self, joint_id: str) -> Optional[JointAxisVisual]:
        """Axis and limit geometry for plotting; registry visuals are left alone."""
        joint = self.context.get_joint(joint_id)
        if joint is None:
            return None
        parent_T = self.context.get_world_transform(joint.parent_node_id)
        if parent_T is None:
            return None
        config = self.context.config
        return compute_joint_axis_visual(
            joint,
            parent_T,
            linear_unit_scale=config.linear_unit_scale,
            axis_length=config.axis_visual_length,
            arc_radius=config.limit_arc_radius,
            arc_segments=config.limit_arc_segments,
        )

    def _add_frames(self, fig: go.Figure, frames: List[np.ndarray]):
        for T in frames:
            origin = T[:3, 3]
            for axis_idx, color in enumerate(FRAME_AXIS_COLORS):
                direction = T[:3, axis_idx]
                norm = np.linalg.norm(direction)
                if norm > 1e-12:
                    direction = direction / norm
                end = origin + direction * self.frame_scale
                fig.add_trace(go.Scatter3d(
                    x=[origin[0], end[0]], y=[origin[1], end[1]], z=[origin[2], end[2]],
                    mode='lines',
                    line=dict(color=color, width=3),
                    showlegend=False
                ))

    def plot_chain_static(self, chain: KinematicChain, save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot a chain with Matplotlib, for reports and headless runs.

        Args:
            chain: Chain to plot
            save_path: Optional image output path

        Returns:
            Matplotlib figure
        """
        fig = plt.figure(figsize=(8, 6))
        ax = fig.add_subplot(111, projection='3d')
        points, names, _ = self._chain_points(chain)

        for start, end in self._link_segments(chain):
            ax.plot([start[0], end[0]], [start[1], end[1]], [start[2], end[2]],
                    color=self.colors['link'], linewidth=3)

        ax.scatter(points[:, 0], points[:, 1], points[:, 2], color=self.colors['joint'], s=30)
        ax.scatter([points[0, 0]], [points[0, 1]], [points[0, 2]],
                   color=self.colors['root'], marker='s', s=60)
        for point, name in zip(points, names):
            ax.text(point[0], point[1], point[2], name, fontsize=8)

        ax.set_xlabel('X (m)')
        ax.set_ylabel('Y (m)')
        ax.set_zlabel('Z (m)')
        ax.set_title(f'{chain.name} ({chain.dof} DOF)')

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info(f"Static chain plot saved to {save_path}")

        return fig

    def plot_joint_values(self, joints: Optional[List[Joint]] = None,
                          save_path: Optional[str] = None) -> go.Figure:
        """
        Bar chart of joint values relative to their limits.

        Each bar shows where the value sits in ``[lower, upper]`` as a
        fraction of the range.

        Args:
            joints: Joints to plot, defaults to every joint in the context
            save_path: Optional HTML output path

        Returns:
            Plotly figure
        """
        if joints is None:
            joints = self.context.get_all_joints()

        names = [j.name for j in joints]
        fractions = [
            (j.value - j.limits.lower) / j.limits.span if j.limits.span > 0 else 0.0
            for j in joints
        ]
        colors = px.colors.qualitative.Set1
        bar_colors = [colors[i % len(colors)] for i in range(len(joints))]

        fig = go.Figure(go.Bar(
            x=names, y=fractions,
            marker_color=bar_colors,
            text=[f'{j.value:.3f}' for j in joints],
            textposition='outside'
        ))
        fig.update_layout(
            title='Joint Values Within Limits',
            yaxis=dict(title='Fraction of range', range=[0, 1.1]),
            xaxis_title='Joint'
        )

        if save_path:
            fig.write_html(save_path)
            logger.info(f"Joint value plot saved to {save_path}")

        return fig


def summarize_chain(context: KinematicsContext, chain: KinematicChain) -> Dict[str, Dict]:
    """Per-joint value and child world position, for logging or printing."""
    summary = {}
    for joint_id in chain.joint_ids:
        joint = context.get_joint(joint_id)
        if joint is None:
            continue
        T = context.get_world_transform(joint.child_node_id)
        summary[joint_id] = {
            'name': joint.name,
            'type': joint.type.value,
            'value': joint.value,
            'position': T[:3, 3].tolist() if T is not None else None,
        }
    return summary
