# Unit tests for argument parsing and the main entrypoint exit codes
import os
import unittest
from unittest.mock import MagicMock, patch

import pytest

import reddit_topic_sentiment_pipeline as pipeline


class TestArgs(unittest.TestCase):

    def test_defaults_run_the_iphone_month_top_40(self):
        with patch.dict(os.environ, {}, clear=True):
            args = pipeline.parse_args([])

        self.assertEqual(args.subreddit, "iPhone")
        self.assertEqual(args.sort, "top")
        self.assertEqual(args.time_filter, "month")
        self.assertEqual(args.top_n, 40)
        self.assertIsNone(args.client_id)
        self.assertEqual(args.user_agent, pipeline.DEFAULT_USER_AGENT)

    def test_credentials_from_environment(self):
        env = {"REDDIT_CLIENT_ID": "id123", "REDDIT_CLIENT_SECRET": "s3cret", "REDDIT_USER_AGENT": "ua/1"}
        with patch.dict(os.environ, env, clear=True):
            args = pipeline.parse_args([])

        self.assertEqual((args.client_id, args.client_secret, args.user_agent), ("id123", "s3cret", "ua/1"))

    def test_config_from_args(self):
        args = pipeline.parse_args([
            "--subreddit", "Android", "--sort", "hot", "--top-n", "10",
            "--strip-markup", "--no-progress", "--output-dir", "out",
        ])

        config = pipeline.config_from_args(args)

        self.assertEqual(config.subreddit, "Android")
        self.assertEqual(config.sort, "hot")
        self.assertEqual(config.top_n, 10)
        self.assertTrue(config.strip_markup)
        self.assertFalse(config.progress)
        self.assertEqual(config.file_prefix, "android")

    def test_explicit_prefix_wins(self):
        config = pipeline.config_from_args(pipeline.parse_args(["--prefix", "launch"]))
        self.assertEqual(config.file_prefix, "launch")

    def test_timeout_reaches_config(self):
        self.assertEqual(pipeline.config_from_args(pipeline.parse_args([])).timeout, pipeline.DEFAULT_TIMEOUT)
        self.assertEqual(pipeline.config_from_args(pipeline.parse_args(["--timeout", "5"])).timeout, 5)

    def test_invalid_time_filter_rejected(self):
        with pytest.raises(SystemExit):
            pipeline.parse_args(["--time-filter", "decade"])


class TestMain(unittest.TestCase):

    def test_missing_credentials_exit_1(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(SystemExit) as ctx:
                pipeline.main([])
        self.assertEqual(ctx.exception.code, 1)

    @patch("reddit_topic_sentiment_pipeline.run_pipeline")
    @patch("reddit_topic_sentiment_pipeline.get_reddit_client")
    def test_structural_error_exit_1(self, mock_client, mock_run):
        mock_run.side_effect = pipeline.LexiconError("opinion_lexicon missing")

        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(SystemExit) as ctx:
                pipeline.main(["--client-id", "x", "--client-secret", "y"])

        self.assertEqual(ctx.exception.code, 1)
        mock_client.assert_called_once_with("x", "y", pipeline.DEFAULT_USER_AGENT, timeout=pipeline.DEFAULT_TIMEOUT)

    @patch("reddit_topic_sentiment_pipeline.run_pipeline")
    @patch("reddit_topic_sentiment_pipeline.get_reddit_client")
    def test_successful_run(self, mock_client, mock_run):
        reddit = MagicMock()
        mock_client.return_value = reddit

        pipeline.main(["--client-id", "x", "--client-secret", "y", "--subreddit", "apple"])

        config = mock_run.call_args[0][0]
        self.assertEqual(config.subreddit, "apple")
        self.assertIs(mock_run.call_args[0][1], reddit)

    @patch("reddit_topic_sentiment_pipeline.run_pipeline")
    @patch("reddit_topic_sentiment_pipeline.get_reddit_client")
    def test_client_uses_configured_timeout(self, mock_client, mock_run):
        with patch.dict(os.environ, {}, clear=True):
            pipeline.main(["--client-id", "x", "--client-secret", "y", "--timeout", "5"])

        mock_client.assert_called_once_with("x", "y", pipeline.DEFAULT_USER_AGENT, timeout=5)
        self.assertEqual(mock_run.call_args[0][0].timeout, 5)


if __name__ == "__main__":
    unittest.main()
