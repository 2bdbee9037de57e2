import logging
import os

import pandas as pd

from errors import AlreadyIssued

logger = logging.getLogger(__name__)

ROLL_COLUMNS = ['voter_id', 'public_key']


def load_voter_roll(db_path):
    if os.path.exists(db_path):
        df = pd.read_csv(db_path, dtype=str)
        missing = [c for c in ROLL_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"voter roll {db_path} is missing columns: {', '.join(missing)}")
        return df
    return initialize_voter_roll()


def initialize_voter_roll():
    return pd.DataFrame(columns=ROLL_COLUMNS)


def save_voter_roll(df, db_path):
    df.to_csv(db_path, index=False)


def issue_from_roll(engine, df):
    """
    Issue a credential to every voter on the roll.

    Returns a copy of the roll with the derived credential_id of each row.
    Voters whose credential is already issued are skipped.
    """
    roll = df.copy()
    roll['credential_id'] = roll['voter_id'].astype(str).map(engine.derive_credential_id)
    for row in roll.itertuples(index=False):
        try:
            engine.issue_credential(row.public_key, row.credential_id)
        except AlreadyIssued:
            logger.warning("credential for voter %s already issued, skipping", row.voter_id)
    return roll


def results_frame(engine):
    # Removed candidates keep their counts, so merge both sources
    tally = engine.results()
    names = list(dict.fromkeys(engine.candidates() + list(tally)))
    results_df = pd.DataFrame(
        [(name, tally.get(name, 0)) for name in names],
        columns=['Candidate', 'Votes'],
    )
    return results_df.sort_values(['Votes', 'Candidate'], ascending=[False, True]).reset_index(drop=True)
