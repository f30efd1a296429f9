import numpy as np
import pytest

from autohist import InfeasiblePartitionError, fit, histogram_regular
from autohist.fitting import infer_type
from autohist.grid import bin_regular
from autohist.regular import REGULAR_RULES, regular_criterion


class TestHistogramRegular:
    @pytest.mark.parametrize("rule", REGULAR_RULES)
    def test_every_rule_yields_a_regular_density(self, rng, rule):
        x = rng.normal(size=500)
        h = histogram_regular(x, rule=rule)
        widths = np.diff(h.breaks)
        np.testing.assert_allclose(widths, widths[0])
        assert h.counts.sum() == len(x)
        assert np.sum(h.density * widths) == pytest.approx(1.0)
        assert h.type == 'regular'

    def test_sturges(self, rng):
        h = histogram_regular(rng.normal(size=100), rule='sturges')
        assert h.n_bins == 8

    def test_freedman_diaconis_without_spread_falls_back_to_sturges(self):
        x = np.concatenate([np.zeros(80), np.linspace(1.0, 2.0, 20)])
        h = histogram_regular(x, rule='fd')
        assert h.n_bins == 8

    def test_closed_form_rules_respect_maxbins(self, rng):
        h = histogram_regular(rng.normal(size=5000), rule='scott', maxbins=5)
        assert h.n_bins == 5

    @pytest.mark.parametrize("closed", ["right", "left"])
    @pytest.mark.parametrize("rule", ["aic", "l2cv", "sturges"])
    def test_counts_are_the_scanned_counts_for_rounded_data(self, rng, rule, closed):
        for _ in range(10):
            x = np.round(rng.normal(3.7, 2.3, size=60), 1)
            h = histogram_regular(x, rule=rule, closed=closed)
            z = (x - x.min()) / (x.max() - x.min())
            np.testing.assert_array_equal(h.counts, bin_regular(z, h.n_bins, closed == 'right'))
            assert h.counts.sum() == len(x)

    def test_wand_level_zero_with_standard_deviation_is_scott(self, rng):
        x = rng.gamma(2.0, size=700)
        wand = histogram_regular(x, rule='wand', level=0, scalest='stdev')
        assert wand.n_bins == histogram_regular(x, rule='scott').n_bins

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
    def test_wand_is_close_to_scott_for_normal_data(self, rng, level):
        x = rng.normal(size=5000)
        scott = histogram_regular(x, rule='scott').n_bins
        wand = histogram_regular(x, rule='wand', level=level).n_bins
        assert abs(wand - scott) <= 0.25 * scott

    def test_wand_options(self, rng):
        x = rng.normal(size=100)
        with pytest.raises(ValueError):
            histogram_regular(x, rule='wand', level=6)
        with pytest.raises(ValueError):
            histogram_regular(x, rule='wand', scalest='mad')
        assert histogram_regular(x, rule='wand', scalest='iqr').n_bins >= 1

    def test_wand_without_spread_falls_back_to_sturges(self):
        x = np.concatenate([np.zeros(80), np.linspace(1.0, 2.0, 20)])
        assert histogram_regular(x, rule='wand').n_bins == 8

    def test_knuth_is_bayes_with_half_unit_concentration(self, rng):
        x = rng.gamma(3.0, size=400)
        knuth = histogram_regular(x, rule='knuth')
        bayes = histogram_regular(x, rule='bayes', a=lambda k: 0.5 * k)
        assert knuth == bayes

    def test_concentration_function_must_be_positive(self, rng):
        with pytest.raises(ValueError):
            histogram_regular(rng.normal(size=100), rule='bayes', a=lambda k: 1.0 - k)

    def test_bayes_records_concentration(self, rng):
        h = histogram_regular(rng.normal(size=300), rule='bayes', a=3.0)
        assert h.a == 3.0
        assert np.isnan(histogram_regular(rng.normal(size=300), rule='aic').a)

    def test_support_widens_breaks(self):
        x = (np.arange(200) + 0.5) / 200
        h = histogram_regular(x, rule='bayes', support=(0.0, 1.0))
        assert h.breaks[0] == 0.0 and h.breaks[-1] == 1.0

    def test_klcv_infeasible_for_single_observation(self):
        with pytest.raises(InfeasiblePartitionError):
            histogram_regular([0.5], rule='klcv', support=(0.0, 1.0))

    def test_unknown_rule(self, rng):
        with pytest.raises(ValueError):
            histogram_regular(rng.normal(size=10), rule='penb')


class TestRegularCriterion:
    def test_aic_by_hand(self):
        z = np.array([0.1, 0.2, 0.3, 0.9])
        crit, a_vec = regular_criterion(z, 'aic', 2)
        n = 4
        expected_k1 = 0.0 + 4 * np.log(4.0) - 1.0
        expected_k2 = n * np.log(2.0) + 3 * np.log(3.0) - 2.0
        np.testing.assert_allclose(crit, [expected_k1, expected_k2])
        np.testing.assert_array_equal(a_vec, [0.0, 0.0])

    def test_mdl_and_klcv_reject_sparse_bins(self):
        z = np.array([0.1, 0.2, 0.3, 0.9])
        mdl, _ = regular_criterion(z, 'mdl', 3)
        klcv, _ = regular_criterion(z, 'klcv', 3)
        assert np.isfinite(mdl[0]) and mdl[2] == -np.inf
        assert np.isfinite(klcv[0]) and klcv[1] == -np.inf

    def test_l2cv_by_hand(self):
        z = np.array([0.1, 0.2, 0.3, 0.9])
        crit, _ = regular_criterion(z, 'l2cv', 2)
        np.testing.assert_allclose(crit, [-2.0 + 5.0 / 16.0 * 16.0, -4.0 + 2.0 * 5.0 / 16.0 * 10.0])


class TestFitDispatch:
    def test_type_inference(self):
        assert infer_type('aic') == 'regular'
        assert infer_type('penb') == 'irregular'
        assert infer_type('bayes') == 'irregular'
        assert infer_type('bayes', 'regular') == 'regular'
        assert infer_type('sturges', 'irregular') == 'regular'
        with pytest.raises(ValueError):
            infer_type('bayes', 'other')
        with pytest.raises(ValueError):
            infer_type('unknown')

    def test_fit_routes_to_family(self, rng):
        x = rng.normal(size=300)
        assert fit(x, rule='l2cv', type='regular').type == 'regular'
        assert fit(x, rule='l2cv').type == 'irregular'
        assert fit(x, rule='br') == histogram_regular(x, rule='br')
