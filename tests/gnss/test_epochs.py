#!/usr/bin/env python3
"""Test suite for epoch segmentation"""

import unittest

import pandas as pd

from pyrawgnss.gnss.epochs import assign_epochs, iter_epochs


def timestamps(offsets_ms):
    base = pd.Timestamp('2020-12-03 12:00:00', tz='UTC')
    return pd.DataFrame({
        'SvName': [f'G{i + 1:02d}' for i in range(len(offsets_ms))],
        'Timestamp': [base + pd.Timedelta(milliseconds=ms) for ms in offsets_ms],
    })


class TestAssignEpochs(unittest.TestCase):
    """Test the 200 ms gap rule"""

    def test_gap_rule(self):
        df = assign_epochs(timestamps([0, 0, 150, 350, 560, 1500]))
        # 350 - 150 is exactly 200 ms and stays in the same epoch
        self.assertEqual(list(df['Epoch']), [0, 0, 0, 0, 1, 2])

    def test_custom_gap(self):
        df = assign_epochs(timestamps([0, 150, 350]), gap=0.1)
        self.assertEqual(list(df['Epoch']), [0, 1, 2])

    def test_idempotent(self):
        once = assign_epochs(timestamps([0, 0, 300, 300, 900]))
        twice = assign_epochs(once)
        self.assertEqual(list(once['Epoch']), list(twice['Epoch']))

    def test_computes_timestamp_when_absent(self):
        df = pd.DataFrame({
            'TimeNanos': [10**12, 10**12, 10**12 + 10**9],
            'FullBiasNanos': [-1290081582000000000] * 3,
            'BiasNanos': [0.0, 0.0, 0.0],
        })
        df = assign_epochs(df)
        self.assertIn('Timestamp', df.columns)
        self.assertEqual(list(df['Epoch']), [0, 0, 1])


class TestIterEpochs(unittest.TestCase):

    def test_order_and_grouping(self):
        df = assign_epochs(timestamps([0, 0, 500, 500, 500, 1200]))
        groups = list(iter_epochs(df))
        self.assertEqual([epoch for epoch, _ in groups], [0, 1, 2])
        self.assertEqual([len(rows) for _, rows in groups], [2, 3, 1])
        self.assertIsInstance(groups[0][0], int)


if __name__ == '__main__':
    unittest.main()
