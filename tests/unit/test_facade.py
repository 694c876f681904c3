"""
Module-level functions mirror the CentralColumns methods.
"""
import central_columns as cc
from central_columns import ColumnChange


def test_module_functions(registry, control):
    control.queue(2, ['col1'])
    assert cc.count(registry, 'phpmyadmin') == 2
    assert cc.columns_not_in_registry(registry, 'phpmyadmin', 'PMA_table') == ['id', 'col2']
    assert cc.update_many(registry, 'phpmyadmin', [ColumnChange(original_name='col1')]) is True
    assert len(control.statements) == 3


def test_module_functions_disabled(disabled_registry, control):
    assert cc.list_columns(disabled_registry, 'phpmyadmin') == []
    assert cc.sync_unique_columns(disabled_registry, 'phpmyadmin', ['PMA_table']) is True
    assert cc.make_consistent_with_list(disabled_registry, 'phpmyadmin', ['PMA_table']) is True
    assert control.statements == []
