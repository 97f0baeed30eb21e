"""Tests for the SpectrumAnalyzer module."""

import numpy as np
import pytest

from spectracurve.core.analyzer import (
    AnalyzerConfig,
    SpectrumAnalyzer,
    decibels_to_bytes,
    make_window,
    numpy_transform,
)
from spectracurve.exceptions import (
    ConfigurationError,
    InvalidInputError,
    UnsupportedWindowError,
)


class TestTables:
    """Tests for the window and frequency tables."""

    @pytest.mark.parametrize("fft_size", [2, 4, 64, 1024])
    def test_table_lengths(self, fft_size, sample_rate):
        """Window spans fft_size taps; frequency table spans half of it."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=fft_size, sample_rate=sample_rate))

        assert len(analyzer.window) == fft_size
        assert len(analyzer.frequencies) == fft_size // 2
        assert analyzer.frequency_bin_count == fft_size // 2

    def test_frequency_per_bin(self, sample_rate):
        """Bin i should sit at i * sample_rate / fft_size Hz."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=256, sample_rate=sample_rate))

        expected = np.arange(128) * sample_rate / 256
        assert np.allclose(analyzer.frequencies, expected)

    def test_blackman_four_taps(self):
        """Four-tap Blackman window has zero edges and 0.63 in the middle."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=4))

        assert np.allclose(analyzer.window, [0.0, 0.63, 0.63, 0.0], atol=1e-12)

    def test_blackman_matches_formula(self):
        """Window should follow 0.42 - 0.5cos(2pi i/(N-1)) + 0.08cos(4pi i/(N-1))."""
        n = 32
        i = np.arange(n)
        f = 2 * np.pi * i / (n - 1)
        expected = 0.42 - 0.5 * np.cos(f) + 0.08 * np.cos(2 * f)

        assert np.allclose(make_window("blackman", n), expected, atol=1e-12)

    def test_unknown_window_rejected(self):
        """Only the Blackman window is supported."""
        with pytest.raises(UnsupportedWindowError):
            make_window("hann", 8)

    def test_tables_are_copies(self):
        """Mutating a returned table must not touch analyzer state."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=8))
        window = analyzer.window
        window[:] = 0.0

        assert analyzer.window.max() > 0.0


class TestConfigure:
    """Tests for configuration and reconfiguration."""

    def test_defaults(self):
        analyzer = SpectrumAnalyzer()

        assert analyzer.fft_size == 512
        assert analyzer.sample_rate == 44100
        assert analyzer.window_type == "blackman"
        assert analyzer.config.smoothing_time_constant == 0.8

    @pytest.mark.parametrize(
        "overrides",
        [
            {"fft_size": 1000},
            {"fft_size": 0},
            {"fft_size": 1},
            {"fft_size": 512.0},
            {"sample_rate": 0},
            {"min_decibels": -30, "max_decibels": -30},
            {"smoothing_time_constant": 1.0},
            {"smoothing_time_constant": -0.1},
            {"not_a_field": 1},
            {"sample_rate": "44100"},
            {"min_decibels": None},
            {"smoothing_time_constant": "0.5"},
        ],
    )
    def test_invalid_config_rejected(self, overrides):
        """Out-of-range settings raise ConfigurationError."""
        analyzer = SpectrumAnalyzer()

        with pytest.raises(ConfigurationError):
            analyzer.configure(**overrides)

    def test_unsupported_window_config(self):
        with pytest.raises(UnsupportedWindowError):
            SpectrumAnalyzer(AnalyzerConfig(window_type="hamming"))

    def test_failed_configure_keeps_state(self, white_noise):
        """A rejected configuration leaves the analyzer untouched."""
        y, _ = white_noise
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=256))
        analyzer.analyze_to_decibels(y)
        before = analyzer.smoothing

        with pytest.raises(ConfigurationError):
            analyzer.configure(fft_size=300)

        assert analyzer.fft_size == 256
        assert np.array_equal(analyzer.smoothing, before)

    def test_fft_size_change_resets_smoothing(self, white_noise):
        """Changing fft_size reallocates a zeroed accumulator."""
        y, _ = white_noise
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=256))
        analyzer.analyze_to_decibels(y)
        assert analyzer.smoothing.max() > 0.0

        analyzer.configure(fft_size=1024)

        assert len(analyzer.smoothing) == 512
        assert np.all(analyzer.smoothing == 0.0)
        assert len(analyzer.window) == 1024

    def test_sample_rate_change_keeps_smoothing(self, white_noise):
        """Only the frequency table follows a sample-rate change."""
        y, _ = white_noise
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=256))
        analyzer.analyze_to_decibels(y)
        before = analyzer.smoothing

        analyzer.configure(sample_rate=48000)

        assert np.array_equal(analyzer.smoothing, before)
        assert analyzer.frequencies[1] == pytest.approx(48000 / 256)

    def test_configure_with_full_config(self):
        analyzer = SpectrumAnalyzer()
        installed = analyzer.configure(AnalyzerConfig(fft_size=64, sample_rate=8000))

        assert installed.fft_size == 64
        assert analyzer.fft_size == 64
        assert analyzer.sample_rate == 8000

    def test_bin_index(self):
        """Frequencies map to the bin that contains them."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=2048, sample_rate=44100))

        assert analyzer.bin_index(0) == 0
        assert analyzer.bin_index(1000) == 46
        assert analyzer.bin_index(6000) == 278


class TestAnalyze:
    """Tests for the decibel and byte spectra."""

    def test_short_buffer_rejected(self):
        """Buffers shorter than fft_size raise without touching state."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=64))

        with pytest.raises(InvalidInputError):
            analyzer.analyze_to_decibels(np.ones(63))
        with pytest.raises(InvalidInputError):
            analyzer.analyze_to_bytes([0.0] * 10)

        assert np.all(analyzer.smoothing == 0.0)

    def test_multichannel_buffer_rejected(self):
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=8))

        with pytest.raises(InvalidInputError):
            analyzer.analyze_to_decibels(np.zeros((2, 8)))

    def test_output_length(self, white_noise):
        y, _ = white_noise
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=1024))

        assert analyzer.analyze_to_decibels(y).shape == (512,)
        assert analyzer.analyze_to_bytes(y).shape == (512,)

    def test_extra_samples_ignored(self, white_noise):
        """Only the first fft_size samples are analysed."""
        y, _ = white_noise
        full = SpectrumAnalyzer(AnalyzerConfig(fft_size=256))
        trimmed = SpectrumAnalyzer(AnalyzerConfig(fft_size=256))

        assert np.array_equal(
            full.analyze_to_decibels(y),
            trimmed.analyze_to_decibels(y[:256]),
        )

    def test_silence_is_negative_infinity(self, silence):
        """A zero accumulator produces -inf rather than an error."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=512))
        db = analyzer.analyze_to_decibels(silence)

        assert np.all(np.isneginf(db))

    def test_silence_converges_to_negative_infinity(self):
        """Repeated zero frames drain the accumulator completely."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=8, smoothing_time_constant=0.5))
        analyzer.analyze_to_decibels(np.ones(8))
        assert np.all(np.isfinite(analyzer.analyze_to_decibels(np.zeros(8))))

        for _ in range(1100):
            db = analyzer.analyze_to_decibels(np.zeros(8))

        assert np.all(analyzer.smoothing == 0.0)
        assert np.all(np.isneginf(db))

    def test_smoothing_decays_geometrically(self):
        """After an impulse, each zero frame scales the accumulator by alpha."""
        alpha = 0.8
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=8, smoothing_time_constant=alpha))
        impulse = np.zeros(8)
        impulse[4] = 1.0

        analyzer.analyze_to_decibels(impulse)
        initial = analyzer.smoothing
        assert np.all(initial > 0.0)

        for k in range(1, 6):
            analyzer.analyze_to_decibels(np.zeros(8))
            assert np.allclose(analyzer.smoothing, initial * alpha**k, rtol=1e-12)

    def test_first_frame_weighted_by_one_minus_alpha(self):
        """From a zero state, the first frame contributes (1 - alpha) of its magnitude."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=8, smoothing_time_constant=0.75))
        buffer = np.arange(8, dtype=float)

        analyzer.analyze_to_decibels(buffer)

        spectrum = np.fft.fft(buffer * make_window("blackman", 8))
        magnitude = np.abs(spectrum[:4]) / 8
        assert np.allclose(analyzer.smoothing, 0.25 * magnitude)

    def test_sine_peak_bin(self, pure_sine):
        """A 1 kHz tone should peak in the bin holding 1 kHz."""
        y, sr = pure_sine
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=2048, sample_rate=sr))
        db = analyzer.analyze_to_decibels(y)

        assert abs(int(np.argmax(db)) - analyzer.bin_index(1000)) <= 1

    def test_bytes_within_range(self, white_noise, pure_sine, silence):
        """Byte output is always uint8 in [0, 255]."""
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=1024))

        for block in (white_noise[0], pure_sine[0], silence, white_noise[0] * 100):
            out = analyzer.analyze_to_bytes(block)
            assert out.dtype == np.uint8
            assert out.min() >= 0
            assert out.max() <= 255

    def test_loud_tone_saturates(self, pure_sine):
        """The peak of a loud tone is above max_decibels and clips to 255."""
        y, sr = pure_sine
        analyzer = SpectrumAnalyzer(
            AnalyzerConfig(fft_size=2048, sample_rate=sr, smoothing_time_constant=0.0)
        )
        out = analyzer.analyze_to_bytes(y)

        assert out.max() == 255

    def test_injected_transform(self):
        """The DFT is a pluggable in-place capability."""
        seen = []

        def spy(real, imag):
            seen.append((real.copy(), imag.copy()))
            real[:] = 0.0
            imag[:] = 0.0

        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=8), transform=spy)
        db = analyzer.analyze_to_decibels(np.ones(8))

        real, imag = seen[0]
        assert np.allclose(real, make_window("blackman", 8))
        assert np.all(imag == 0.0)
        assert np.all(np.isneginf(db))

    def test_failing_transform_leaves_state(self):
        """No partial update when the transform raises."""

        def broken(real, imag):
            raise InvalidInputError("transform failed")

        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=8), transform=broken)
        with pytest.raises(InvalidInputError):
            analyzer.analyze_to_decibels(np.ones(8))

        assert np.all(analyzer.smoothing == 0.0)

    def test_reset(self, white_noise):
        y, _ = white_noise
        analyzer = SpectrumAnalyzer(AnalyzerConfig(fft_size=64))
        analyzer.analyze_to_decibels(y)

        analyzer.reset()

        assert len(analyzer.smoothing) == 32
        assert np.all(analyzer.smoothing == 0.0)


class TestDecibelsToBytes:
    """Tests for dB to byte rescaling."""

    def test_above_range_saturates(self):
        assert decibels_to_bytes(np.array([-20.0]), -100, -30)[0] == 255

    def test_range_endpoints(self):
        out = decibels_to_bytes(np.array([-100.0, -65.0, -30.0]), -100, -30)

        assert out.tolist() == [0, 127, 255]

    def test_special_values(self):
        """-inf and nan clip to 0, +inf to 255."""
        out = decibels_to_bytes(np.array([-np.inf, np.nan, np.inf, -500.0]), -100, -30)

        assert out.tolist() == [0, 0, 255, 0]


class TestNumpyTransform:
    """Tests for the default DFT capability."""

    def test_matches_numpy_fft(self):
        rng = np.random.default_rng(0)
        real = rng.standard_normal(16)
        imag = np.zeros(16)
        expected = np.fft.fft(real)

        numpy_transform(real, imag)

        assert np.allclose(real, expected.real)
        assert np.allclose(imag, expected.imag)

    def test_rejects_non_power_of_two(self):
        with pytest.raises(InvalidInputError):
            numpy_transform(np.zeros(12), np.zeros(12))

    def test_rejects_mismatched_lengths(self):
        with pytest.raises(InvalidInputError):
            numpy_transform(np.zeros(8), np.zeros(4))
