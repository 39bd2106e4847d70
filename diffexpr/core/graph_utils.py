"""
Expression graph utilities
Printing and analysing the DAG reachable from one or more roots
"""

from collections import Counter
from typing import Dict, List

import numpy as np

from .expression import Const, Expression, Operation, Parameter, as_expression
from .traversal import post_order


def _collect(roots) -> List[Expression]:
    """Distinct nodes reachable from roots, operands before users."""
    return post_order([as_expression(r) for r in roots])


def get_graph_stats(*roots) -> Dict:
    """
    Graph statistics (no printing)

    Returns:
        dict with node / edge counts, leaf counts, fan-in / fan-out and a
        breakdown of operation tags
    """
    nodes = _collect(roots)
    if not nodes:
        return {
            'nodes': 0,
            'edges': 0,
            'parameters': 0,
            'constants': 0,
            'tracked': 0,
            'max_fan_in': 0,
            'avg_fan_in': 0.0,
            'max_fan_out': 0,
            'avg_fan_out': 0.0,
            'operations': {}
        }

    index = {id(n): i for i, n in enumerate(nodes)}
    ops = [n for n in nodes if isinstance(n, Operation)]

    # fan-in: operand count per Operation
    fan_ins = [len(n.op.operands()) for n in ops]
    n_edges = sum(fan_ins)

    # fan-out: number of operand slots each node fills
    fan_outs = [0] * len(nodes)
    for n in ops:
        for child in n.op.operands():
            fan_outs[index[id(child)]] += 1

    return {
        'nodes': len(nodes),
        'edges': n_edges,
        'parameters': sum(isinstance(n, Parameter) for n in nodes),
        'constants': sum(isinstance(n, Const) for n in nodes),
        'tracked': sum(n.with_grad for n in nodes),
        'max_fan_in': max(fan_ins) if fan_ins else 0,
        'avg_fan_in': float(np.mean(fan_ins)) if fan_ins else 0.0,
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(Counter(n.op.tag for n in ops))
    }


def print_graph_summary(*roots, detailed: bool = False) -> Dict:
    """
    Print a summary of the graph under `roots`

    Args:
        roots: one or more Expressions
        detailed: also list every node (graphs of at most 100 nodes)

    Returns:
        the get_graph_stats() dictionary
    """
    stats = get_graph_stats(*roots)
    if stats['nodes'] == 0:
        print("Empty expression graph")
        return stats

    print("\n" + "="*70)
    print("EXPRESSION GRAPH SUMMARY")
    print("="*70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Parameters:         {stats['parameters']:,}")
    print(f"Constants:          {stats['constants']:,}")
    print(f"Tracked (grad):     {stats['tracked']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Operation breakdown:")
    n_ops = sum(stats['operations'].values())
    for tag, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / n_ops
        print(f"  {tag:16s}: {count:6,} ({pct:5.1f}%)")

    if detailed and stats['nodes'] <= 100:
        nodes = _collect(roots)
        index = {id(n): i for i, n in enumerate(nodes)}
        print()
        print("="*70)
        print("DETAILED NODE LIST")
        print("="*70)
        for i, node in enumerate(nodes):
            if isinstance(node, Operation):
                parents = ", ".join(f"Node{index[id(c)]}" for c in node.op.operands())
                print(f"Node {i:3d}: {node.op.tag:16s} len={len(node):<6d} <- [{parents}]")
            elif isinstance(node, Parameter):
                print(f"Node {i:3d}: {'parameter':16s} len={len(node):<6d} [leaf]")
            else:
                print(f"Node {i:3d}: {'const':16s} {node.scalar:<10.6g} [leaf]")

    print("="*70 + "\n")
    return stats


def analyze_graph_complexity(*roots) -> str:
    """
    Text report on the size and shape of the graph under `roots`
    """
    stats = get_graph_stats(*roots)

    if stats['nodes'] == 0:
        return "Empty expression graph"

    report = []
    report.append("Graph Complexity Analysis:")
    report.append(f"  Total nodes: {stats['nodes']:,}")
    report.append(f"  Total connections: {stats['edges']:,}")
    report.append(f"  Average branching: {stats['avg_fan_out']:.2f}")

    if stats['nodes'] < 1000:
        complexity = "Low"
    elif stats['nodes'] < 10000:
        complexity = "Medium"
    else:
        complexity = "High"

    report.append(f"  Complexity level: {complexity}")

    if stats['operations']:
        n_ops = sum(stats['operations'].values())
        top_ops = sorted(stats['operations'].items(), key=lambda x: x[1], reverse=True)[:3]
        report.append("  Top operations:")
        for tag, count in top_ops:
            pct = 100.0 * count / n_ops
            report.append(f"    - {tag}: {pct:.1f}%")

    return "\n".join(report)
