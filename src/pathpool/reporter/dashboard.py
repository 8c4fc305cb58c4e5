"""Reporter that produces a text file that gives high level
information on a multi-path run.

"""
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

import numpy as np
import pandas as pd
from tabulate import tabulate
from jinja2 import Template

from pathpool.reporter.reporter import FileReporter

class DashboardReporter(FileReporter):
    """A text based report of the paths, pool and timings of a run.

    Written as an org-mode document.
    """

    FILE_ORDER = ("dashboard_path",)
    SUGGESTED_EXTENSIONS = ("dash.org",)

    RUN_SECTION_TEMPLATE = \
"""
Init Datetime: {{ init_date_time }}
Last write Datetime: {{ curr_date_time }}

Number of Paths: {{ n_paths }}
Successful Paths: {{ n_successful_paths }}
Failed Paths: {{ n_failed_paths }}

Pooled Draws: {{ n_pooled_draws }}
Resampled Draws: {{ n_multi_draws }}
Unique Resampled Draws: {{ n_unique_draws }}

Total log density evaluations: {{ total_evals }}

** Paths

{{ path_table }}

"""

    IMPORTANCE_SECTION_TEMPLATE = \
"""
Estimator: {{ estimator }}
{% for key, value in diagnostics.items() %}
{{ key }}: {{ value }}{% endfor %}

Effective sample size of the pool: {{ ess }}

** Weight by Path

{{ weight_table }}

"""

    PERFORMANCE_SECTION_TEMPLATE =\
"""
{% for line in timing_lines %}{{ line }}
{% endfor %}

Worker Avg. Path Times:

{{ worker_avg_path_time }}

"""

    DASHBOARD_TEMPLATE = \
"""* Run

{{ run }}

* Importance Weights

{{ importance }}

* Performance

{{ performance }}

"""

    def __init__(self, **kwargs):

        super().__init__(**kwargs)

        self.init_date_time = None
        self.estimator_name = "Unknown"

    def init(self, estimator=None, **kwargs):

        self._check_file(0)

        self.init_date_time = datetime.today()

        if estimator is not None:
            self.estimator_name = type(estimator).__name__

    def gen_run_section(self, path_results=None, pool_idxs=None, run_stats=None, **kwargs):

        path_records = []
        for result in path_results:
            path_records.append({
                'path_idx' : result.path_idx,
                'status' : result.status.name,
                'n_draws' : result.num_draws,
                'n_evals' : result.eval_count,
                'elbo' : result.diagnostics.get('elbo', np.nan),
            })

        path_df = pd.DataFrame(path_records,
                               columns=('path_idx', 'status', 'n_draws', 'n_evals', 'elbo'))

        path_table_str = tabulate(path_df,
                                  headers=path_df.columns,
                                  tablefmt='orgtbl',
                                  showindex=False)

        run_section_d = {
            'init_date_time' : self.init_date_time,
            'curr_date_time' : datetime.today().isoformat(),
            'n_paths' : run_stats.n_paths,
            'n_successful_paths' : run_stats.n_successful_paths,
            'n_failed_paths' : run_stats.n_failed_paths,
            'n_pooled_draws' : run_stats.n_pooled_draws,
            'n_multi_draws' : len(pool_idxs),
            'n_unique_draws' : len(np.unique(pool_idxs)),
            'total_evals' : run_stats.total_log_density_evaluations,
            'path_table' : path_table_str,
        }

        return Template(self.RUN_SECTION_TEMPLATE).render(**run_section_d)

    def gen_importance_section(self, pool=None, weights=None,
                               estimator_diagnostics=None, **kwargs):

        norm_weights = weights / np.sum(weights)
        ess = 1.0 / np.sum(norm_weights**2)

        weight_df = pd.DataFrame({'path_idx' : pool.path_idxs,
                                  'weight' : norm_weights})

        weight_agg_df = weight_df.groupby('path_idx')[['weight']].sum()
        weight_agg_df.rename(columns={'weight' : 'total_weight'}, inplace=True)

        weight_table_str = tabulate(weight_agg_df,
                                    headers=weight_agg_df.columns,
                                    tablefmt='orgtbl')

        importance_section_d = {
            'estimator' : self.estimator_name,
            'diagnostics' : estimator_diagnostics if estimator_diagnostics is not None else {},
            'ess' : ess,
            'weight_table' : weight_table_str,
        }

        return Template(self.IMPORTANCE_SECTION_TEMPLATE).render(**importance_section_d)

    def gen_performance_section(self, worker_segment_times=None, run_stats=None, **kwargs):

        worker_records = []
        for worker_idx, path_times in worker_segment_times.items():
            for path_time in path_times:
                worker_records.append((worker_idx, path_time))

        worker_df = pd.DataFrame(worker_records, columns=('worker_idx', 'path_time'))
        worker_agg_table = worker_df.groupby('worker_idx')[['path_time']].mean()
        worker_agg_table.rename(columns={'path_time' : 'avg_path_time (s)'}, inplace=True)

        worker_agg_table_str = tabulate(worker_agg_table,
                                        headers=worker_agg_table.columns,
                                        tablefmt='orgtbl')

        performance_section_d = {
            'timing_lines' : run_stats.timing_lines(),
            'worker_avg_path_time' : worker_agg_table_str,
        }

        return Template(self.PERFORMANCE_SECTION_TEMPLATE).render(**performance_section_d)

    def write_dashboard(self, report_str):
        """Write the dashboard to the file."""

        with open(self.file_path, mode=self._text_mode(0)) as dashboard_file:
            dashboard_file.write(report_str)

    def report(self, **kwargs):

        report_str = Template(self.DASHBOARD_TEMPLATE).render(
            run=self.gen_run_section(**kwargs),
            importance=self.gen_importance_section(**kwargs),
            performance=self.gen_performance_section(**kwargs),
        )

        self.write_dashboard(report_str)

    def cleanup(self, **kwargs):
        pass
