"""Expressions sent to the remote runtime.

The reporting namespace wraps ``clojure.test/report`` so every assertion event
is recorded on the metadata of the test var that produced it. ``run`` answers
with the summary vector and ``results`` with the per-test details; both shapes
are decoded by :mod:`repl_test_bridge.decoder`.
"""

REPORT_NS = "repl-test-bridge.report"

INSTALL_REPORTING = """\
(ns repl-test-bridge.report
  (:require [clojure.test :as t]))

(defonce last-run (atom []))

(defn- record! [event]
  (when-let [v (first t/*testing-vars*)]
    (when (#{:pass :fail :error} (:type event))
      (alter-meta! v update ::status conj
                   [(:type event)
                    (:message event)
                    (pr-str (:expected event))
                    (pr-str (:actual event))
                    (:line event)]))))

(defn run [filter-re]
  (let [nses (cond->> (all-ns)
               filter-re (filter #(re-find filter-re (str (ns-name %)))))
        tests (filter (comp :test meta) (mapcat (comp vals ns-interns) nses))
        report t/report
        start (System/nanoTime)]
    (doseq [v tests] (alter-meta! v dissoc ::status))
    (reset! last-run (vec tests))
    (let [counters (binding [t/*test-out* (java.io.StringWriter.)
                             t/report (fn [event] (record! event) (report event))]
                     (apply t/run-tests nses))]
      [(some-> filter-re str)
       (:test counters 0)
       (:pass counters 0)
       (:fail counters 0)
       (:error counters 0)
       (/ (- (System/nanoTime) start) 1e9)])))

(defn results []
  (vec (for [v @last-run
             :let [m (meta v)]
             :when (seq (::status m))]
         [(str (ns-name (:ns m)) "/" (:name m))
          {:file (:file m) :line (:line m) :name (str (:name m))}
          (vec (::status m))])))
"""


def quote_string(value: str) -> str:
    """Write ``value`` as a string literal the runtime reader accepts."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def run_tests_form(filter_expression: str | None) -> str:
    """Run every loaded test namespace, optionally filtered by a regex."""
    pattern = (
        "nil"
        if filter_expression is None
        else f"(re-pattern {quote_string(filter_expression)})"
    )
    return f"({REPORT_NS}/run {pattern})"


def fetch_results_form() -> str:
    """Fetch per-assertion details of the last run."""
    return f"({REPORT_NS}/results)"
