import importlib


def test_circular_dependencies():
    """Test if modules can be imported without circular dependencies"""
    # List of all modules to test in dependency order
    modules = [
        # Independent modules (no internal deps)
        'central_columns.exceptions',
        'central_columns.cache',
        'central_columns.sql',
        'central_columns.record',
        'central_columns.structure',

        # Strategy (self-contained with raw execution)
        'central_columns.strategy',
        'central_columns.strategy.base',
        'central_columns.strategy.postgres',
        'central_columns.strategy.sqlite',

        # Options, cursor and connection
        'central_columns.options',
        'central_columns.cursor',
        'central_columns.connection',

        # Registry
        'central_columns.schema',
        'central_columns.store',
        'central_columns.sync',
        'central_columns.bulk',
        'central_columns.registry',

        # Main package
        'central_columns',
    ]

    results = {}
    for module in modules:
        print(f'Checking {module}... ', end='')
        try:
            importlib.import_module(module)
            print('✓ Success')
            results[module] = True
        except Exception as e:
            print(f'✗ Failed: {e}')
            results[module] = False

    failures = [m for m, v in results.items() if not v]
    if failures:
        print('\nFailed modules:')
        for module in failures:
            print(f'  - {module}')

    assert not failures, f'{len(failures)} modules failed circular dependency check'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
