import pandas as pd
import pytest
from central_columns.options import DatabaseOptions, RegistryOptions
from central_columns.options import iterdict_data_loader, pandas_data_loader


def test_init_defaults():
    """Test default initialization"""
    options = DatabaseOptions(
        hostname='testhost',
        username='testuser',
        password='testpass',
        database='testdb',
        port=1234,
        timeout=30
    )

    assert options.drivername == 'postgresql'
    assert options.appname is not None
    assert options.data_loader == pandas_data_loader


def test_validation():
    """Test validation rules"""
    with pytest.raises(ValueError):
        DatabaseOptions(
            drivername='invalid',
            hostname='testhost',
            username='testuser',
            password='testpass',
            database='testdb',
            port=1234,
            timeout=30
        )

    with pytest.raises(ValueError):
        DatabaseOptions(drivername='postgresql', hostname='testhost')


def test_sqlite_options():
    """Test SQLite options validation"""
    options = DatabaseOptions(
        drivername='sqlite',
        database='test.db'
    )
    assert options.drivername == 'sqlite'
    assert options.database == 'test.db'

    with pytest.raises(ValueError):
        DatabaseOptions(drivername='sqlite')


@pytest.mark.parametrize(('kwargs', 'enabled'), [
    ({'database': 'phpmyadmin'}, True),
    ({'database': 'phpmyadmin', 'enabled': False}, False),
    ({'database': None}, False),
    ({'database': 'phpmyadmin', 'table': ''}, False),
])
def test_registry_options_enabled(kwargs, enabled):
    """Test the registry counts as enabled only when fully configured"""
    assert RegistryOptions(**kwargs).is_enabled is enabled


def test_registry_options_defaults():
    options = RegistryOptions(database='phpmyadmin')
    assert options.table == 'pma__central_columns'
    assert options.user is None


def test_data_loaders():
    data = [{'name': 'Alice', 'age': 30}, {'name': 'Bob', 'age': 25}]

    result = pandas_data_loader(data, ['name', 'age'])
    assert isinstance(result, pd.DataFrame)
    assert list(result.columns) == ['name', 'age']
    assert result.iloc[1]['age'] == 25

    empty = pandas_data_loader([], ['name', 'age'])
    assert list(empty.columns) == ['name', 'age']
    assert empty.empty

    assert iterdict_data_loader(data, ['name', 'age']) == data
    assert iterdict_data_loader([], ['name', 'age']) == []


if __name__ == '__main__':
    __import__('pytest').main([__file__])
