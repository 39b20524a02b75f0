from lineuplens.utils.normalization import collation_key, fold_name


def test_fold_name():
    assert fold_name('Beyoncé') == 'beyonce'
    assert fold_name('  ALPHA ') == 'alpha'


def test_collation_key_orders_case_insensitively():
    names = ['beta', 'Alpha', 'alpha', 'Émile']
    assert sorted(names, key=collation_key) == ['Alpha', 'alpha', 'beta', 'Émile']
