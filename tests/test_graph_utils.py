from diffexpr import analyze_graph_complexity, constant, get_graph_stats, parameter, print_graph_summary


def _graph():
    a, _ = parameter([1.0, 2.0], need_grad=True)
    b, _ = parameter([3.0, 4.0])
    return (a * b + 2.0).sin(), a, b


def test_graph_stats():
    y, a, b = _graph()
    stats = get_graph_stats(y)
    assert stats['nodes'] == 6
    assert stats['edges'] == 5
    assert stats['parameters'] == 2
    assert stats['constants'] == 1
    assert stats['tracked'] == 4
    assert stats['max_fan_in'] == 2
    assert stats['operations'] == {'mul': 1, 'add': 1, 'sin': 1}


def test_shared_nodes_counted_once():
    a, _ = parameter([1.0], need_grad=True)
    s = a.exp()
    y = s * s
    stats = get_graph_stats(y)
    assert stats['nodes'] == 3
    assert stats['edges'] == 3
    assert stats['max_fan_out'] == 2


def test_empty_and_leaf_graphs():
    assert get_graph_stats()['nodes'] == 0
    stats = get_graph_stats(constant(1.0))
    assert stats['nodes'] == 1 and stats['operations'] == {}
    assert analyze_graph_complexity() == "Empty expression graph"


def test_print_graph_summary(capsys):
    y, _, _ = _graph()
    stats = print_graph_summary(y, detailed=True)
    out = capsys.readouterr().out
    assert "EXPRESSION GRAPH SUMMARY" in out
    assert "DETAILED NODE LIST" in out
    assert "sin" in out
    assert stats['nodes'] == 6


def test_analyze_graph_complexity():
    y, _, _ = _graph()
    report = analyze_graph_complexity(y)
    assert report.startswith("Graph Complexity Analysis:")
    assert "Complexity level: Low" in report


def test_detailed_listing_puts_operands_first(capsys):
    a, _ = parameter([1.0], need_grad=True)
    s = a.exp()
    y = s + s * s
    print_graph_summary(y, detailed=True)
    out = capsys.readouterr().out
    rows = [line for line in out.splitlines() if line.startswith("Node ")]
    assert len(rows) == 4
    for row in rows:
        own = int(row.split(":")[0].split()[1])
        if "<- [" in row:
            parents = row.split("<- [")[1].rstrip("]").split(", ")
            assert all(int(p[len("Node"):]) < own for p in parents)
